import re
from typing import List

from app.schemas.question_review import GeneratedReview, ReviewValidation

HINT_PLACEHOLDERS = [r"\[.*?\]", r"TODO", r"placeholder", r"example", r"lorem ipsum"]
SOLUTION_PLACEHOLDERS = [r"\[.*?\]", r"TODO", r"placeholder", r"example solution"]
EXPLANATION_PLACEHOLDERS = [r"\[.*?\]", r"TODO", r"placeholder", r"example explanation"]
INCOMPLETE_PATTERNS = [r"\.\.\.$", r"incomplete", r"to be continued", r"\[cut off\]", r"\[truncated\]"]

MIN_SOLUTION_LENGTH = 50
MIN_EXPLANATION_LENGTH = 100
VERBOSE_LENGTH = 5000
HIGH_TOKEN_USAGE = 10000


def _matches_any(patterns: List[str], text: str) -> bool:
    return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)


def _hint_issues(hints: List[str]) -> List[str]:
    issues = [f"Hint {i} is missing or empty" for i, hint in enumerate(hints, start=1) if not hint.strip()]
    if issues:
        return issues

    hint1, hint2, hint3 = hints
    # Each level should be at least roughly as detailed as the one before
    if len(hint2) < len(hint1) * 0.8:
        issues.append("Hint 2 should be more detailed than Hint 1")
    if len(hint3) < len(hint2) * 0.8:
        issues.append("Hint 3 should be more detailed than Hint 2")

    for i, hint in enumerate(hints, start=1):
        if _matches_any(HINT_PLACEHOLDERS, hint):
            issues.append(f"Hint {i} may contain placeholder text")
    return issues


def _solution_issues(solution: str) -> List[str]:
    if not solution.strip():
        return ["Solution is missing or empty"]
    issues = []
    if len(solution.strip()) < MIN_SOLUTION_LENGTH:
        issues.append(f"Solution is too short (minimum {MIN_SOLUTION_LENGTH} characters)")
    if _matches_any(SOLUTION_PLACEHOLDERS, solution):
        issues.append("Solution may contain placeholder text")
    has_steps = re.search(r"step\s*\d+|1\.|2\.|3\.", solution, re.IGNORECASE)
    if not has_steps and len(solution) > 200:
        issues.append("Solution should be formatted with clear steps")
    return issues


def _explanation_issues(explanation: str) -> List[str]:
    if not explanation.strip():
        return ["Explanation is missing or empty"]
    issues = []
    if len(explanation.strip()) < MIN_EXPLANATION_LENGTH:
        issues.append(f"Explanation is too short (minimum {MIN_EXPLANATION_LENGTH} characters)")
    if _matches_any(EXPLANATION_PLACEHOLDERS, explanation):
        issues.append("Explanation may contain placeholder text")
    return issues


def validate_review_result(result: GeneratedReview) -> ReviewValidation:
    issues = _hint_issues([result.hint1, result.hint2, result.hint3])
    issues.extend(_solution_issues(result.solution))
    issues.extend(_explanation_issues(result.explanation))

    warnings = []
    if len(result.solution) > VERBOSE_LENGTH:
        warnings.append("Solution is very long - consider if it needs to be more concise")
    if len(result.explanation) > VERBOSE_LENGTH:
        warnings.append("Explanation is very long - consider if it needs to be more concise")
    for label, content in (("Solution", result.solution), ("Explanation", result.explanation)):
        if content and is_incomplete(content):
            warnings.append(f"{label} looks cut off")
    if result.tokens_used and result.tokens_used > HIGH_TOKEN_USAGE:
        warnings.append("High token usage - review may be expensive")

    return ReviewValidation(is_valid=not issues, issues=issues, warnings=warnings)


def is_incomplete(content: str) -> bool:
    return _matches_any(INCOMPLETE_PATTERNS, content.strip())
