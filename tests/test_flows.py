"""End-to-end conversation flows: every envelope on the way must satisfy the envelope schema."""

import json

import pytest

from openfloor import (
    BotAgent,
    ByeEvent,
    FloorManager,
    FloorState,
    GetManifestsEvent,
    GrantFloorEvent,
    InviteEvent,
    PublishManifestsEvent,
    YieldFloorEvent,
    build_envelope,
    create_basic_manifest,
    create_text_utterance,
    parse_payload,
    validate_and_parse_payload,
    validate_envelope,
)

USER = "tag:example.com,2025:user-1"
FLOOR_MANAGER = "tag:example.com,2025:fm-1"
WEATHER = "tag:example.com,2025:agent-2"


def weather_manifest():
    return create_basic_manifest(
        speaker_uri=WEATHER,
        service_url="https://agent2.example.com",
        name="Agent2",
        organization="ExampleOrg",
        description="Handles weather.",
        capabilities=["weather"],
    )


def fm_manifest():
    return create_basic_manifest(
        speaker_uri=FLOOR_MANAGER,
        service_url="https://fm.example.com",
        name="Floor",
        organization="ExampleOrg",
        description="Routes the conversation.",
    )


class WeatherBot(BotAgent):
    def respond_to_utterance(self, event, inbound):
        return [create_text_utterance(self.speaker_uri, "It is sunny.", to={"speakerUri": inbound.sender.speaker_uri})]


def assert_valid(envelope):
    result = validate_envelope(envelope)
    assert result.valid, result.errors


class TestDiscoveryFlow:
    """getManifests answered by publishManifests"""

    @pytest.mark.asyncio
    async def test_discovery(self):
        agent = BotAgent(weather_manifest())
        request = build_envelope(
            FLOOR_MANAGER,
            events=[GetManifestsEvent(to={"speakerUri": WEATHER})],
            conversation_id="conv-1",
        )
        assert_valid(request)

        response = await agent.process_envelope(request)
        assert_valid(response)
        assert response.conversation.id == "conv-1"
        (published,) = response.events
        assert isinstance(published, PublishManifestsEvent)
        assert published.servicing_manifests[0].identification.conversational_name == "Agent2"

    def test_publish_over_the_wire(self):
        envelope = build_envelope(
            WEATHER,
            events=[
                PublishManifestsEvent(to={"speakerUri": FLOOR_MANAGER}, servicing_manifests=[weather_manifest()])
            ],
            conversation_id="conv-1",
        )
        text = envelope.to_payload().to_json()
        result = validate_and_parse_payload(text)
        assert result.valid, result.errors
        assert result.payload.envelope.to_object() == envelope.to_object()


class TestMultiTurnFlow:
    """User asks, floor manager grants, agent answers, yields and leaves"""

    @pytest.mark.asyncio
    async def test_floor_passing(self):
        manager = FloorManager(fm_manifest())
        agent = WeatherBot(weather_manifest())
        manager.add_conversant(agent.manifest)
        ledger = FloorState()

        # Invitation
        invite = build_envelope(
            FLOOR_MANAGER, events=[InviteEvent(to={"speakerUri": WEATHER})], conversation_id="conv-2"
        )
        assert_valid(invite)
        await agent.process_envelope(invite)
        ledger = ledger.apply_all(invite.events, invite.sender.speaker_uri)
        assert agent.active_conversation.id == "conv-2"
        assert ledger.participants == (WEATHER,)

        # User utterance
        question = build_envelope(
            USER, events=[create_text_utterance(USER, "What is the weather?")], conversation_id="conv-2"
        )
        assert_valid(question)
        forwarded = await manager.process_envelope(question)
        assert_valid(forwarded)
        assert forwarded.sender.speaker_uri == FLOOR_MANAGER

        # Floor manager grants the floor
        grant = build_envelope(
            FLOOR_MANAGER, events=[GrantFloorEvent(to={"speakerUri": WEATHER})], conversation_id="conv-2"
        )
        assert_valid(grant)
        await agent.process_envelope(grant)
        ledger = ledger.apply_all(grant.events, grant.sender.speaker_uri)
        assert agent.has_floor
        assert ledger.holder == WEATHER

        # Agent answers
        answer = await agent.process_envelope(forwarded)
        assert_valid(answer)
        (reply,) = answer.events
        assert reply.to.speaker_uri == FLOOR_MANAGER
        assert reply.dialog_event.features["text"].tokens[0].value == "It is sunny."

        # Agent yields, then leaves
        yield_floor = build_envelope(WEATHER, events=[YieldFloorEvent()], conversation_id="conv-2")
        assert_valid(yield_floor)
        ledger = ledger.apply_all(yield_floor.events, yield_floor.sender.speaker_uri)
        assert ledger.holder is None

        bye = build_envelope(WEATHER, events=[ByeEvent()], conversation_id="conv-2")
        assert_valid(bye)
        await manager.process_envelope(bye)
        ledger = ledger.apply_all(bye.events, bye.sender.speaker_uri)
        assert manager.active_conversants == ()
        assert ledger.participants == ()

    def test_wire_round_trip_of_every_step(self):
        envelopes = [
            build_envelope(USER, events=[create_text_utterance(USER, "What is the weather?")]),
            build_envelope(FLOOR_MANAGER, events=[GrantFloorEvent(to={"speakerUri": WEATHER})]),
            build_envelope(WEATHER, events=[create_text_utterance(WEATHER, "It is sunny.")]),
            build_envelope(WEATHER, events=[YieldFloorEvent()]),
            build_envelope(WEATHER, events=[ByeEvent()]),
        ]
        for envelope in envelopes:
            text = envelope.to_payload().to_json()
            assert validate_envelope(json.loads(text)).valid
            assert parse_payload(text).envelope.to_object() == envelope.to_object()
