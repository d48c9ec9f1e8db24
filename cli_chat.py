"""Terminal client that runs the chat pipeline in process."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from shopchat.chat import ChatService
from shopchat.dependencies import get_chat_service
from shopchat.intents import classify
from shopchat.orders import CallerContext

DIM = "\033[2m"
RESET = "\033[0m"


async def perform_query(service: ChatService, message: str, caller: CallerContext) -> str:
    return await service.respond(message, caller)


def pretty_print_response(message: str, reply: str) -> None:
    intent = classify(message)
    print(f"> {message} {DIM}[{intent.type}]{RESET}")
    for line in reply.splitlines():
        print(f"  {line}")


def interactive_shell(service: ChatService, caller: CallerContext) -> None:
    print("Interactive catalog chat. Type 'exit' to quit.")
    while True:
        try:
            message = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not message:
            continue
        if message.lower() in {"exit", "quit", "salir"}:
            return
        reply = asyncio.run(perform_query(service, message, caller))
        pretty_print_response(message, reply)


def batch_mode(service: ChatService, caller: CallerContext, file_path: Path) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            message = line.strip()
            if not message:
                continue
            reply = asyncio.run(perform_query(service, message, caller))
            pretty_print_response(message, reply)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the catalog chat")
    parser.add_argument("message", nargs="?", help="Message to send. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with messages to send line by line")
    parser.add_argument("--user-id", help="Act as this user for order lookups")
    parser.add_argument("--admin", action="store_true", help="Act as an admin caller")
    args = parser.parse_args(list(argv) if argv is not None else None)

    service = get_chat_service()
    caller = CallerContext(user_id=args.user_id, is_admin=args.admin)

    if args.batch:
        batch_mode(service, caller, args.batch)
        return 0
    if args.message:
        reply = asyncio.run(perform_query(service, args.message, caller))
        pretty_print_response(args.message, reply)
        return 0
    interactive_shell(service, caller)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
