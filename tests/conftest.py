import json
from typing import List, Optional, Union

import pytest

from travel_parser.llm.base_provider import BaseLLMProvider, LLMConfig


class ScriptedLLM(BaseLLMProvider):
    """Returns queued responses in order; an Exception in the queue is raised instead"""

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None):
        super().__init__(LLMConfig(provider="scripted", model="scripted"))
        self.responses = list(responses or [])
        self.calls = []

    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt})
        if not self.responses:
            raise RuntimeError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def validate_config(self) -> bool:
        return True


def as_json(data) -> str:
    return json.dumps(data)


HOTEL_TEXT = """Hotel Lutetia - Booking confirmation
Confirmation number: HL-88231
Guest: Marie Curie
Check-in: 2024-05-02  Check-out: 2024-05-05 (3 nights)
Deluxe double room, breakfast included
Total: 645.00 EUR
"""

TRAIN_TEXT = """SNCF e-ticket
TGV INOUI 6611 Paris Gare de Lyon -> Lyon Part-Dieu
Departure 2024-06-12 08:04, arrival 10:00
Passenger: Jean Valjean, coach 14 seat 72, 2nd class
Price: 89.00 EUR
"""


@pytest.fixture
def scripted_llm():
    return ScriptedLLM


@pytest.fixture
def hotel_text():
    return HOTEL_TEXT


@pytest.fixture
def train_text():
    return TRAIN_TEXT
