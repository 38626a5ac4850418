#!/usr/bin/env python3
"""
slackecho - Main Entry Point
Forwards piped input to a Slack conversation, and manages the stored connections
"""
import sys
import codecs
import signal
import argparse
from typing import BinaryIO, List, Optional
from tabulate import tabulate
from config import config
from logger import log_session_start, log_session_end, main_logger
from connections import ConnectionStore, ConnectionStoreError, normalize_name
from relay import RelayProcessor, PairingError, register_connection, start

SUBCOMMANDS = ("send", "new", "list", "remove")


def process_input(processor: RelayProcessor, stream: BinaryIO, chunk_size: Optional[int] = None) -> None:
    """
    Decode stream as UTF-8 and feed it to the processor until end of input

    A chunk that cannot be decoded is logged and skipped.
    """
    chunk_size = chunk_size or config.input_chunk_size
    decoder = codecs.getincrementaldecoder("utf-8")()
    read = getattr(stream, "read1", stream.read)

    while True:
        chunk = read(chunk_size)
        if not chunk:
            break

        try:
            text = decoder.decode(chunk)
        except UnicodeDecodeError as e:
            main_logger.warning(f"Skipping {len(chunk)} bytes of undecodable input: {e}")
            decoder.reset()
            continue

        if text:
            processor.feed(text)

    try:
        tail = decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        main_logger.warning(f"Input ended inside a multi-byte character: {e}")
        tail = ""
    if tail:
        processor.feed(tail)

    # Relay the last line even without a trailing newline
    processor.flush()


def subcommand_send(args: argparse.Namespace, store: ConnectionStore, stdin: BinaryIO) -> None:
    """Relay stdin through the chosen connection"""
    token, recipient_id = store.get(args.connection)

    with start(token, recipient_id) as processor:
        process_input(processor, stdin)


def subcommand_new(args: argparse.Namespace, store: ConnectionStore) -> None:
    """Pair a bot token with a conversation and store it under a name"""
    name = normalize_name(args.name)
    if name in store.names():
        raise ConnectionStoreError("name already taken!")

    token, recipient_id = register_connection(args.token)
    store.add(name, token, recipient_id)
    store.save()

    print(f"new connection successfully created: {name}")


def subcommand_list(args: argparse.Namespace, store: ConnectionStore) -> None:
    """Print every stored connection"""
    rows = [(connection.name, connection.recipient_id) for connection in store.connections()]
    if not rows:
        print("no connections stored")
        return
    print(tabulate(rows, headers=["name", "recipient"]))


def subcommand_remove(args: argparse.Namespace, store: ConnectionStore) -> None:
    """Delete a stored connection"""
    store.remove(args.name)
    store.save()


def create_parser() -> argparse.ArgumentParser:
    """Build the command line parser"""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c", "--config",
        metavar="FILE",
        default=None,
        help=f"path to the connections file (default: {config.connections_file})"
    )

    parser = argparse.ArgumentParser(
        prog="slackecho",
        description="Forwards input via Slack to a user"
    )
    subparsers = parser.add_subparsers(dest="command")

    send_parser = subparsers.add_parser("send", parents=[common], help="relay stdin (default command)")
    send_parser.add_argument(
        "connection",
        nargs="?",
        default=None,
        metavar="CONNECTION NAME",
        help="name of the connection to use for sending"
    )

    new_parser = subparsers.add_parser("new", parents=[common], help="registers bot to user connection")
    new_parser.add_argument("token", help="Slack bot token to send from")
    new_parser.add_argument("name", help="name to specify this connection")

    subparsers.add_parser("list", parents=[common], help="list all connections")

    remove_parser = subparsers.add_parser("remove", parents=[common], help="removes a connection")
    remove_parser.add_argument("name", help="name of the connection to remove")

    return parser


def parse_args(argv: List[str]) -> argparse.Namespace:
    """Parse argv, treating anything that is not a sub-command as 'send'"""
    if not argv or (argv[0] not in SUBCOMMANDS and argv[0] not in ("-h", "--help")):
        argv = ["send"] + argv
    return create_parser().parse_args(argv)


def _terminate(signum, frame):
    """Turn SIGTERM into the same unwinding as Ctrl-C"""
    raise KeyboardInterrupt


def main(argv: Optional[List[str]] = None, stdin: Optional[BinaryIO] = None) -> int:
    """Main entry point"""
    args = parse_args(list(sys.argv[1:] if argv is None else argv))

    try:
        config.validate()
    except ValueError as e:
        print(f"error in configuration: {e}", file=sys.stderr)
        return 1

    log_session_start(args.command)
    signal.signal(signal.SIGTERM, _terminate)

    try:
        store = ConnectionStore.load(args.config or config.connections_file)

        if args.command == "new":
            subcommand_new(args, store)
        elif args.command == "list":
            subcommand_list(args, store)
        elif args.command == "remove":
            subcommand_remove(args, store)
        else:
            subcommand_send(args, store, stdin or sys.stdin.buffer)
    except ConnectionStoreError as e:
        main_logger.error(f"Connection error: {e}")
        print(f"error in connection store: {e}", file=sys.stderr)
        return 1
    except PairingError as e:
        main_logger.error(f"Pairing failed: {e}")
        print(f"error while registering connection: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        main_logger.info("Received keyboard interrupt")
        return 130
    finally:
        log_session_end()

    return 0


if __name__ == "__main__":
    sys.exit(main())
