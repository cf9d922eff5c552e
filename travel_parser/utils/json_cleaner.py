import json
import re
from typing import Dict, Any, Optional

from ..exceptions import JSONExtractionError


class JSONResponseCleaner:
    """Recovers the first JSON object embedded in free-form LLM output.

    Scans every opening brace with ``json.JSONDecoder.raw_decode`` so the
    result is the first syntactically valid top-level object, not a greedy
    span that swallows trailing prose or a second object.
    """

    def __init__(self):
        self.decoder = json.JSONDecoder()
        self.wrapper_patterns = [
            r'<think>.*?</think>',
            r'<analysis>.*?</analysis>',
            r'<reasoning>.*?</reasoning>',
        ]

    def extract_json(self, response: str) -> Dict[str, Any]:
        """Extract and parse the first JSON object from an LLM response"""
        if not response or not response.strip():
            raise JSONExtractionError("Empty model response")

        cleaned_response = self._remove_think_blocks(response)

        start = cleaned_response.find('{')
        if start == -1:
            raise JSONExtractionError("No JSON object found in model response")

        last_error: Optional[str] = None
        while start != -1:
            resume_at = start + 1
            try:
                parsed, _ = self.decoder.raw_decode(cleaned_response, start)
            except json.JSONDecodeError as e:
                last_error = str(e)
                parsed = None
                # Try to fix common JSON issues within the balanced block
                block = self._balanced_block(cleaned_response, start)
                if block is None:
                    # Unclosed object, e.g. a reply cut off by max_tokens
                    break
                parsed = self._parse_repaired(block)
                # Objects nested in a broken block are not top-level
                resume_at = start + len(block)
            if isinstance(parsed, dict):
                return parsed
            start = cleaned_response.find('{', resume_at)

        raise JSONExtractionError(
            f"Malformed JSON object in model response: {last_error or 'not an object'}"
        )

    def _remove_think_blocks(self, text: str) -> str:
        """Remove <think>...</think> and similar reasoning blocks from text"""
        for pattern in self.wrapper_patterns:
            text = re.sub(pattern, '', text, flags=re.DOTALL | re.IGNORECASE)
        return text.strip()

    def _parse_repaired(self, block: str) -> Optional[Any]:
        fixed = self._fix_common_json_issues(block)
        try:
            return json.loads(fixed)
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _balanced_block(text: str, start: int) -> Optional[str]:
        """Return the brace-balanced span starting at ``start``, string aware"""
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        return None

    def _fix_common_json_issues(self, json_str: str) -> str:
        """Fix common JSON formatting issues"""
        # Remove trailing commas
        json_str = re.sub(r',(\s*[}\]])', r'\1', json_str)

        # Fix Python literals emitted by some models
        json_str = re.sub(r':\s*True\b', ': true', json_str)
        json_str = re.sub(r':\s*False\b', ': false', json_str)
        json_str = re.sub(r':\s*None\b', ': null', json_str)

        return json_str
