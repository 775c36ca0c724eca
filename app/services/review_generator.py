import asyncio
import json
import logging
import re
from typing import Dict, Optional, Tuple

import httpx
from fastapi import HTTPException, status

from app.core.config import settings
from app.schemas.question import Question
from app.schemas.question_review import GeneratedReview

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 1.0
ANTHROPIC_VERSION = "2023-06-01"


class ReviewGenerator:
    """Generates hints, a worked solution and an explanation for a question via the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        self.model = model or settings.ANTHROPIC_MODEL
        self.base_url = (base_url or settings.ANTHROPIC_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.AI_REQUEST_TIMEOUT
        self.transport = transport
        self.retry_delay = INITIAL_RETRY_DELAY

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    async def _make_request(self, client: httpx.AsyncClient, prompt: str, max_tokens: int) -> dict:
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        for attempt in range(MAX_RETRIES + 1):
            try:
                response = await client.post(f"{self.base_url}/v1/messages", json=payload, headers=self._headers())
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                code = e.response.status_code
                if code in (401, 403) or attempt == MAX_RETRIES:
                    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"AI API error ({code}): {e.response.text}")
                delay = self.retry_delay * (2 ** attempt)
                if code == 429 and e.response.headers.get("retry-after", "").isdigit():
                    delay = float(e.response.headers["retry-after"])
                logger.warning(f"AI API returned {code}, retrying in {delay:.1f}s (attempt {attempt + 1})")
            except httpx.RequestError as e:
                if attempt == MAX_RETRIES:
                    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Network error: {e}")
                delay = self.retry_delay * (2 ** attempt)
                logger.warning(f"AI API request failed ({e}), retrying in {delay:.1f}s")
            await asyncio.sleep(delay)

    @staticmethod
    def _text_and_tokens(data: dict) -> Tuple[str, int]:
        blocks = data.get("content") or []
        if not blocks or blocks[0].get("type") != "text":
            raise ValueError("Unexpected response type from AI API")
        usage = data.get("usage") or {}
        tokens = (usage.get("input_tokens") or 0) + (usage.get("output_tokens") or 0)
        return blocks[0]["text"], tokens

    @staticmethod
    def _question_block(question: Question) -> str:
        lines = [f"Question: {question.question_text}"]
        if question.passage:
            lines.append(f"\nPassage: {question.passage}")
        if question.question_image_url:
            lines.append("\nNote: This question includes an image.")
        lines.append("\nOptions:")
        for letter in ("a", "b", "c", "d", "e"):
            text = getattr(question, f"option_{letter}")
            if text:
                lines.append(f"{letter.upper()}) {text}")
        lines.append(f"\nCorrect Answer: {question.correct_answer}")
        return "\n".join(lines)

    def _tutor(self, subject_name: Optional[str]) -> str:
        if subject_name and "math" in subject_name.lower():
            return "You are an expert mathematics tutor."
        return "You are an expert tutor."

    async def generate_hints(self, client: httpx.AsyncClient, question: Question, subject_name: Optional[str] = None) -> Tuple[Dict[str, str], int]:
        prompt = (
            f"{self._tutor(subject_name)} Generate three progressive hints for this multiple-choice question.\n\n"
            f"{self._question_block(question)}\n\n"
            "Generate three hints that progressively guide the student:\n"
            "- Hint 1: Broad guidance - helps student understand what concept or approach to use\n"
            "- Hint 2: More specific - provides more direction toward the solution\n"
            "- Hint 3: Near-complete guidance - almost reveals the answer but still requires some thinking\n\n"
            'Format your response as JSON:\n{\n  "hint1": "...",\n  "hint2": "...",\n  "hint3": "..."\n}\n\n'
            "Each hint should be concise (2-3 sentences max) and educational."
        )
        text, tokens = self._text_and_tokens(await self._make_request(client, prompt, max_tokens=1024))
        match = re.search(r"\{[\s\S]*\}", text)
        if not match:
            raise ValueError("No JSON found in hints response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse hints response: {e}")
        hints = {key: parsed.get(key) or "" for key in ("hint1", "hint2", "hint3")}
        return hints, tokens

    async def generate_solution(self, client: httpx.AsyncClient, question: Question, subject_name: Optional[str] = None) -> Tuple[str, int]:
        prompt = (
            f"{self._tutor(subject_name)} Provide a detailed, step-by-step solution for this multiple-choice question.\n\n"
            f"{self._question_block(question)}\n\n"
            "Provide a clear, step-by-step solution that:\n"
            "1. Explains the approach or method to use\n"
            "2. Shows all calculations or reasoning clearly\n"
            "3. Explains why the correct answer is correct\n"
            "4. Mentions why other options might be tempting but are incorrect\n\n"
            "Format your solution with clear steps and explanations."
        )
        return self._text_and_tokens(await self._make_request(client, prompt, max_tokens=2048))

    async def generate_explanation(self, client: httpx.AsyncClient, question: Question, subject_name: Optional[str] = None) -> Tuple[str, int]:
        prompt = (
            "You are an expert tutor. Provide a detailed explanation for this multiple-choice question.\n\n"
            f"{self._question_block(question)}\n\n"
            "Provide a comprehensive explanation that:\n"
            "1. Explains the key concepts and context\n"
            "2. Shows why the correct answer is the best choice\n"
            "3. Explains why other options are incorrect\n"
            "4. Provides additional context that helps students understand the topic better"
        )
        return self._text_and_tokens(await self._make_request(client, prompt, max_tokens=2048))

    async def review_question(self, question: Question, subject_name: Optional[str] = None) -> GeneratedReview:
        if not self.api_key:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="AI review is not configured.")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            (hints, hint_tokens), (solution, solution_tokens), (explanation, explanation_tokens) = await asyncio.gather(
                self.generate_hints(client, question, subject_name),
                self.generate_solution(client, question, subject_name),
                self.generate_explanation(client, question, subject_name),
            )

        return GeneratedReview(
            **hints,
            solution=solution,
            explanation=explanation,
            tokens_used=hint_tokens + solution_tokens + explanation_tokens,
        )


review_generator = ReviewGenerator()
