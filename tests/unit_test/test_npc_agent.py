import pytest

from npcmind.agent import NpcAgent, NpcAgentCfg
from npcmind.agent.decision.prompt_profiles import DEFAULT_PROFILE
from npcmind.agent.decision.schemas import Entity, ModelResponse, ToolInvocation


def test_cfg_from_settings_applies_typed_overrides():
    cfg = NpcAgentCfg.from_settings(
        {
            "name": "Pam",
            "decision_interval_s": 2,
            "history_capacity": 5.0,
            "catalog_from_memory": True,
            "dump_dir": "/tmp/dumps",
            "max_tokens": "lots",  # wrong type -> ignored
            "catalog_from_memory_extra": 1,  # unknown -> ignored
        }
    )
    assert cfg.name == "Pam"
    assert cfg.decision_interval_s == 2.0 and isinstance(cfg.decision_interval_s, float)
    assert cfg.history_capacity == 5 and isinstance(cfg.history_capacity, int)
    assert cfg.catalog_from_memory is True
    assert cfg.dump_dir == "/tmp/dumps"
    assert cfg.max_tokens == 600


def test_cfg_prompt_keys_do_not_touch_shared_default():
    cfg = NpcAgentCfg.from_settings(
        {"npc_profile_name": "warehouse", "npc_setting_context": "A cold warehouse.", "npc_system_prompt": "  "}
    )
    assert cfg.profile.name == "warehouse"
    assert cfg.profile.setting_context == "A cold warehouse."
    assert cfg.profile.system_prompt == ""
    assert DEFAULT_PROFILE.name == "default"
    assert DEFAULT_PROFILE.setting_context == ""


def test_tick_scans_on_first_tick_then_on_interval(make_client, actor):
    calls = []
    real_scan = actor.visible_entities

    def counting():
        calls.append(1)
        return real_scan()

    actor.visible_entities = counting
    agent = NpcAgent.from_host(NpcAgentCfg(scan_interval_s=0.5), actor, model_client=make_client())

    agent.tick(0.1)
    assert len(calls) == 1
    assert [e.id for e in agent.memory.visible()] == ["Printer", "Kitchen"]
    for _ in range(4):
        agent.tick(0.1)
    assert len(calls) == 1
    agent.tick(0.2)
    assert len(calls) == 2


def test_failing_perception_source_is_tolerated(make_client, actor):
    def broken():
        raise ConnectionError("host down")

    actor.visible_entities = broken
    actor.static_locations = broken
    agent = NpcAgent.from_host(NpcAgentCfg(), actor, model_client=make_client())
    agent.tick(0.1)
    assert agent.memory.visible() == []
    assert agent.controller.snapshot_catalog().is_empty


def test_full_cycle_through_agent(make_client, actor):
    client = make_client(
        [
            ModelResponse(
                tool_calls=[
                    ToolInvocation(name="speak", arguments='{"text": "Break time."}'),
                    ToolInvocation(name="select_destination", arguments='{"target": "Break Room", "thoughts": "Snacks."}'),
                ]
            )
        ]
    )
    agent = NpcAgent.from_host(NpcAgentCfg(name="Kevin", persona="Loves chili."), actor, model_client=client)
    agent.tick(0.1)

    result = agent.poll_once()

    assert result.navigation.target == "Break Room"
    assert actor.walked == ["Break Room"]
    assert actor.spoken == ["Break time.", "Snacks."]
    (request,) = client.requests
    assert request.persona_context == "Loves chili."
    assert "- Id: Break Room  Desc: Coffee and snacks." in request.vision_context


def test_catalog_from_memory_offers_recently_seen(make_client, actor):
    agent = NpcAgent.from_host(NpcAgentCfg(catalog_from_memory=True, memory_duration_s=5.0), actor, model_client=make_client())
    agent.tick(0.1)
    actor.visible = [Entity("Printer", "A large office printer.")]
    agent.scan()
    assert "Kitchen" in agent.controller.snapshot_catalog().names


def test_start_and_stop(make_client, actor):
    actor.idle = False
    agent = NpcAgent.from_host(NpcAgentCfg(decision_interval_s=0.1), actor, model_client=make_client())
    agent.start()
    assert agent.is_running
    agent.close()
    assert not agent.is_running


def test_cfg_rejects_fractional_and_out_of_range_numbers(make_client, actor):
    cfg = NpcAgentCfg.from_settings(
        {"history_capacity": 2.5, "history_window": 0, "max_tokens": 0, "decision_interval_s": -1.0}
    )
    assert cfg.history_capacity == 20
    assert cfg.history_window == 0
    assert cfg.max_tokens == 600
    assert cfg.decision_interval_s == 0.75

    cfg = NpcAgentCfg.from_settings({"history_capacity": 0})
    assert cfg.history_capacity == 20
    agent = NpcAgent.from_host(cfg, actor, model_client=make_client())
    assert agent.history.capacity == 20


if __name__ == "__main__":
    pytest.main(["-v", __file__])
