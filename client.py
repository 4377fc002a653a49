"""
Interactive ConversationRelay simulator.

Connects to a running Relay Agent server, announces a call, and sends each line
typed on stdin as a transcribed prompt. A line starting with "!interrupt " sends
an interrupt carrying the rest of the line as the text heard before the caller
cut in. An empty line or end of input hangs up.

Usage:
    python client.py [--url ws://localhost:8080/ws] [--phone +15555550100]
"""

import argparse
import asyncio
import logging
import sys

from relay_agent.errors import RelayAgentError
from relay_agent.services.relay_client import RelayClient

INTERRUPT_COMMAND = "!interrupt "

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("relay_client")


def parse_args():
    parser = argparse.ArgumentParser(description="Simulate a ConversationRelay call")
    parser.add_argument("--url", default="ws://localhost:8080/ws", help="Agent WebSocket URL")
    parser.add_argument("--phone", default="+15555550100", help="Caller phone number")
    return parser.parse_args()


async def read_line(prompt: str) -> str:
    print(prompt, end="", flush=True)
    return await asyncio.to_thread(sys.stdin.readline)


async def print_replies(client: RelayClient) -> None:
    while True:
        try:
            reply = await client.receive_turn()
        except RelayAgentError as e:
            print(f"\nAgent error: {e}\nYou: ", end="", flush=True)
            continue
        print(f"\nCoach: {reply}\nYou: ", end="", flush=True)


async def run_call(url: str, phone: str) -> None:
    client = RelayClient(url, phone_number=phone)
    if not await client.connect():
        return

    call_sid = await client.send_setup()
    logger.info(f"Call started: {call_sid}")
    replies = asyncio.create_task(print_replies(client))

    try:
        while True:
            line = (await read_line("You: ")).strip()
            if not line:
                break
            if line.startswith(INTERRUPT_COMMAND):
                await client.send_interrupt(line[len(INTERRUPT_COMMAND):])
            else:
                await client.send_prompt(line)
    finally:
        replies.cancel()
        await client.close()
        logger.info("Call ended")


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(run_call(args.url, args.phone))
