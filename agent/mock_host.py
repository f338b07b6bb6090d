import argparse
import logging

from npcmind.env.mock_host import create_app

logging.basicConfig(level=logging.INFO)

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--port", type=int, default=5802)
    parser.add_argument("--travel_polls", type=int, default=4, help="Status polls needed to reach a destination")
    args = parser.parse_args()

    app = create_app(travel_polls=args.travel_polls)
    print(f"Starting Mock Host (actor API + /v1/chat/completions) on port {args.port}...")
    print(f"Point the agent at it with: OPENAI_API_KEY=EMPTY --host_url http://localhost:{args.port} --base_url http://localhost:{args.port}/v1")
    app.run(host='0.0.0.0', port=args.port)
