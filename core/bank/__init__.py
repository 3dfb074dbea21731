"""Question bank clients: search, screenshot upload and submission."""

from .errors import BankError, SearchError, SubmitError, UploadError
from .search import PRIMARY_SEARCH_PATH, SECONDARY_SEARCH_PATH, QuestionBankClient
from .submit import SubmitClient
from .types import Candidate, SearchSource
from .upload import ScreenshotUploader, decode_screenshot

__all__ = [
    "BankError",
    "SearchError",
    "SubmitError",
    "UploadError",
    "Candidate",
    "SearchSource",
    "PRIMARY_SEARCH_PATH",
    "SECONDARY_SEARCH_PATH",
    "QuestionBankClient",
    "ScreenshotUploader",
    "SubmitClient",
    "decode_screenshot",
]
