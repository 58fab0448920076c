"""
Tests for API schema validation.
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    ActionRequest,
    ChooseHeroRequest,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    HeroChoice,
    HintCardInfo,
    HouseInfo,
    ReserveNameRequest,
    SlotInfo,
)
from ..engine_core.errors import ActionRejected
from ..engine_core.state import HeroType


class TestRequests:
    """Tests for request models."""

    def test_create_session_defaults(self):
        request = CreateSessionRequest()
        assert request.session_id is None
        assert request.initial_ph is None

    def test_negative_initial_ph(self):
        with pytest.raises(ValidationError):
            CreateSessionRequest(initial_ph=-1)

    def test_empty_name(self):
        with pytest.raises(ValidationError):
            ReserveNameRequest(player_id="p1", name="")

    def test_hero_choice(self):
        """Hero choices mirror the engine's heroes."""
        assert {h.value for h in HeroChoice} == {h.value for h in HeroType}
        assert ChooseHeroRequest(player_id="p1", hero="siren").hero == HeroChoice.SIREN
        with pytest.raises(ValidationError):
            ChooseHeroRequest(player_id="p1", hero="elf")

    def test_action_request_requires_type(self):
        with pytest.raises(ValidationError):
            ActionRequest(player_id="p1")


class TestResponses:
    """Tests for response models."""

    def test_error_response_serializes_code(self):
        response = ErrorResponse(error="nope", error_code=ErrorCode.NOT_YOUR_TURN)
        data = response.model_dump(mode="json")
        assert data["error_code"] == "NOT_YOUR_TURN"
        assert data["api_version"] == "v1"

    def test_engine_codes_are_known(self):
        """Every engine rejection code has an API error code."""
        codes = {cls.error_code for cls in _rejection_classes(ActionRejected)}
        assert codes <= {c.value for c in ErrorCode}

    def test_hint_card_fragment_range(self):
        with pytest.raises(ValidationError):
            HintCardInfo(
                card_id="hint_1", house_id="C1", tier="easy", text="t",
                citation="c", front_source="f", fragment_index=9, order=1,
            )

    def test_slot_range(self):
        assert SlotInfo(slot_index=7).card_id is None
        with pytest.raises(ValidationError):
            SlotInfo(slot_index=8)

    def test_hidden_house_has_no_cost(self):
        assert HouseInfo(house_id="C1").base_cost is None


def _rejection_classes(cls):
    yield cls
    for sub in cls.__subclasses__():
        yield from _rejection_classes(sub)
