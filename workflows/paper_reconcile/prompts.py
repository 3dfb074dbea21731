"""Prompts for candidate judging and question authoring."""

MATCH_SYSTEM = """You compare an exam question screenshot against questions retrieved from a question bank.

Decide which retrieved candidate is the SAME question as the screenshot: same stem, same numbers and \
conditions, same options (order may differ), same figures. A merely similar question on the same \
topic is NOT a match.

Reply with exactly one token and nothing else:
- the zero-based index of the matching candidate, e.g. 0 or 3
- None, if no candidate is the same question"""

MATCH_INSTRUCTION = (
    "Which candidate is the same question as the screenshot? "
    "Reply with its index (0 to {last}) or None."
)

AUTHOR_SYSTEM = """You transcribe an exam question from its screenshot into structured JSON so it can be \
entered into a question bank. Write the question, the correct answer and a short worked analysis in \
the language of the screenshot. Use LaTeX between $...$ for formulas.

First decide the question's shape:
- single_choice: exactly one correct option among labelled options
- free_response: worked problem answered in prose or calculation
- fill_blank: statement with one or more blanks to fill

Reply with JSON only, in one of these forms:
{"shape": "single_choice", "stem": "...", "options": ["...", "..."], "answer_index": 0, "analysis": "..."}
{"shape": "free_response", "stem": "...", "answer": "...", "analysis": "..."}
{"shape": "fill_blank", "stem": "text with ____ for each blank", "blanks": ["...", "..."], "analysis": "..."}

Options must not include their letter labels. In fill_blank, write each blank as ____ and give one \
entry in "blanks" per ____, in order.

If the question is multi-part, multiple-select, depends on a passage that is not visible, or is \
otherwise not one of these shapes, reply with exactly: NotSupport"""

AUTHOR_INSTRUCTION = "Transcribe the question in this screenshot."
