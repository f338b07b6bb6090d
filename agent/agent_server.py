import argparse
import logging
import os
import time

from npcmind.agent.decision import ProximityChatRegistry
from npcmind.agent.npc_agent import NpcAgent, NpcAgentCfg
from npcmind.env.http_actor import HttpActorClient
from npcmind.utils.logging_utils import setup_logging

# Configuration
# The host engine (or `agent/mock_host.py`) serves the actor API
HOST_API_URL = os.environ.get("NPC_HOST_URL", "http://localhost:5802")

logger = logging.getLogger("NpcAgentServer")


def _read_persona(path: str) -> str:
    if not path:
        return ""
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip()


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--name", default="Dwight", help="Actor name (also used as log/dump prefix)")
    parser.add_argument("--persona", default="", help="Persona text")
    parser.add_argument("--persona_file", default="", help="Read persona text from a file")
    parser.add_argument("--host_url", default=HOST_API_URL)
    parser.add_argument("--model_name", default=os.environ.get("NPC_MODEL_NAME", "gpt-4.1-mini"))
    parser.add_argument("--base_url", default=os.environ.get("OPENAI_BASE_URL", ""))
    parser.add_argument("--interval", type=float, default=0.75, help="Decision poll interval in seconds")
    parser.add_argument("--dt", type=float, default=0.1, help="Frame tick in seconds")
    parser.add_argument("--output_path", default="", help="Write logs (and model dumps) under this directory")
    args = parser.parse_args()

    setup_logging(args.output_path or None, run_name=args.name)

    cfg = NpcAgentCfg(
        name=args.name,
        persona=args.persona or _read_persona(args.persona_file),
        model_name=args.model_name,
        base_url=args.base_url,
        decision_interval_s=args.interval,
        dump_dir=os.path.join(args.output_path, "dumps") if args.output_path else None,
    )
    host = HttpActorClient(args.host_url)
    registry = ProximityChatRegistry()
    agent = NpcAgent.from_host(cfg, host, chat_registry=registry, position_fn=host.position)

    logger.info(f"[LOOP] Starting actor '{cfg.name}' -> host={args.host_url}, model={cfg.model_name}")
    agent.start()
    try:
        while True:
            agent.tick(args.dt)
            time.sleep(args.dt)
    except KeyboardInterrupt:
        logger.info("Agent stopped by user")
    finally:
        agent.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
