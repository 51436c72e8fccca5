# admin_agent/cli.py
"""
Terminal front end for the admin agent.

Reads a line, sends it through AgentChatClient, prints the reply.
Local commands: `exit` / `quit` leave, `/clear` starts a fresh conversation.
Empty input is ignored. EOF and Ctrl-C exit without a traceback.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import sys

from admin_agent.client import AgentChatClient, AGENT_CHAT_URL

BANNER = (
    "Auro Admin Agent. How can I help you? Try commands like:\n"
    "  - Add a new laundromat\n"
    "  - Show all offline machines\n"
    "  - Generate a report\n"
    "Type 'exit' to quit, '/clear' to start over."
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Chat with the laundromat admin agent")
    parser.add_argument("--url", default=AGENT_CHAT_URL, help="agent chat endpoint")
    parser.add_argument("--timeout", type=float, default=60.0, help="request timeout in seconds")
    return parser.parse_args(argv)


def run(client: AgentChatClient, read=input, write=print):
    write(BANNER)
    while True:
        try:
            line = read("> ")
        except (EOFError, KeyboardInterrupt):
            write("")
            return

        text = line.strip()
        if not text:
            continue
        if text.lower() in ("exit", "quit"):
            return
        if text == "/clear":
            client.reset()
            write("Conversation cleared.")
            continue

        write(client.send(text))


def main(argv=None):
    args = parse_args(argv)
    run(AgentChatClient(url=args.url, timeout=args.timeout))
    return 0


if __name__ == "__main__":
    sys.exit(main())
