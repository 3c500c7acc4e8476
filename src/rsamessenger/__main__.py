"""The Command Line Interface for the messenger, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface): any argument left out on the command
line is asked for interactively, unless non-interactive mode is active.

Typical usage example:

    rsamessenger keyGen 2048
    rsamessenger --server http://example.org:5000 sendKey me@example.org
    python -m rsamessenger getMsg me@example.org
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import os
import pathlib
import sys
import typing

import rsamessenger
from rsamessenger import keygen
from rsamessenger import rsa
from rsamessenger.errors import MessengerError
from rsamessenger.keystore import DirectoryKeyStore
from rsamessenger.keystore import PRIVATE_NAME
from rsamessenger.keystore import PUBLIC_NAME
from rsamessenger.server import ServerClient

SERVER_ENV = "RSAMESSENGER_SERVER"


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands of the messenger.",
            choices=["keyGen", "sendKey", "getKey", "sendMsg", "getMsg"],
        ),
    "keyGen":
        HelpData("Generates a key pair of the given size and stores it locally."),
    "sendKey":
        HelpData("Publishes the local public key under the given email."),
    "getKey":
        HelpData("Retrieves and stores the public key of the given email."),
    "sendMsg":
        HelpData("Encrypts a message with the public key of the given email and sends it."),
    "getMsg":
        HelpData("Retrieves the message for the given email and decrypts it with the local private key."),
    "keysize":
        HelpData(
            description="Key size (in bits), must be a multiple of 8.",
            format=int,
            default=2048,
        ),
    "email":
        HelpData(description="The email to publish under, fetch for or send to."),
    "plaintext":
        HelpData(description="The ASCII message to send."),
    "server":
        HelpData(description="Base URL of the key/message server."),
    "overwrite":
        HelpData(
            description="Overwrite the existing local key pair?",
            choices=["Y", "N"],
            default="N",
        ),
}

needs = {
    "keyGen": ("keysize",),
    "sendKey": ("email", "server"),
    "getKey": ("email", "server"),
    "sendMsg": ("email", "plaintext", "server"),
    "getMsg": ("email", "server"),
}

email = argparse.ArgumentParser(add_help=False)
email.add_argument("email", nargs="?", help=help_dict["email"].description)
corep = argparse.ArgumentParser(prog="rsamessenger")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {rsamessenger.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--verbose", "-V", action="store_true", help="Log debug output")
corep.add_argument("--server",
                   "-s",
                   default=os.environ.get(SERVER_ENV),
                   help=help_dict["server"].description + f" Defaults to ${SERVER_ENV}.")
corep.add_argument("--keydir",
                   "-k",
                   type=pathlib.Path,
                   default=pathlib.Path("."),
                   help="Directory holding the key files. Defaults to the current directory.")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen_parser = commands.add_parser("keyGen", help=help_dict["keyGen"].description)
keygen_parser.add_argument("keysize", nargs="?", type=int, help=help_dict["keysize"].description)
keygen_parser.add_argument("--overwrite",
                           "-o",
                           action="store_const",
                           const="Y",
                           help=help_dict["overwrite"].description)
commands.add_parser("sendKey", parents=[email], help=help_dict["sendKey"].description)
commands.add_parser("getKey", parents=[email], help=help_dict["getKey"].description)
sendmsg_parser = commands.add_parser("sendMsg", parents=[email], help=help_dict["sendMsg"].description)
sendmsg_parser.add_argument("plaintext", nargs="?", help=help_dict["plaintext"].description)
commands.add_parser("getMsg", parents=[email], help=help_dict["getMsg"].description)


def checkmodes(arg: str, nonint: bool):
    helper_data = help_dict[arg]
    if nonint and helper_data.default is not None:
        return helper_data.default
    if nonint:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return helper_data


def choice_handler(arg: str, nonint: bool, prntr: typing.Callable = print):
    helper_data = checkmodes(arg, nonint)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    for choice in helper_data.choices:
        defstring = " (Default)" if choice == helper_data.default else ""
        if help_dict.get(choice, None):
            prntr(f"{choice} - {help_dict[choice].description}" + defstring)
        else:
            prntr(f"{choice}" + defstring)
    if helper_data.default is not None:
        prntr("To accept default just click enter. Otherwise specify value.")
    while True:
        ch = input(f"{arg}: ")
        if ch in helper_data.choices:
            return ch
        if not ch and helper_data.default is not None:
            return helper_data.default
        prntr("Please select an option from the list.")


def input_handler(arg: str, nonint: bool, prntr: typing.Callable = print):
    helper_data = checkmodes(arg, nonint)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    if helper_data.default is not None:
        prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    cls = helper_data.format
    while True:
        ch = input(f"{arg}: ")
        if not ch and helper_data.default is not None:
            return helper_data.default
        if ch == "":
            prntr("Please provide a value.")
            continue
        try:
            return cls(ch)
        except ValueError:
            prntr(f"We could not convert your value to {cls.__name__}.")


def run_keygen(args: argparse.Namespace, store: DirectoryKeyStore, nonint: bool, pspr: typing.Callable) -> None:
    """Generates and stores a fresh key pair, after confirming any overwrite.

    Raises:
        FileExistsError: If a local key exists, non-interactive mode is active and --overwrite was not given.
    """
    if store.exists(PUBLIC_NAME) or store.exists(PRIVATE_NAME):
        rs = args.overwrite
        if rs is None and nonint:
            raise FileExistsError("Local public or private key already exists! Pass --overwrite to replace it.")
        if rs is None:
            rs = choice_handler("overwrite", nonint, pspr)
        if rs == "N":
            print("Local public or private key already exists!")
            return
    pair = keygen.derive_key_pair(args.keysize)
    public, private = rsa.records_from_key_pair(pair)
    store.store_public(public)
    store.store_private(private)
    pspr(f"\n{pair.mod.bit_length()}-bit key pair generated!")


def run_remote(args: argparse.Namespace, store: DirectoryKeyStore, pspr: typing.Callable) -> None:
    """Runs one of the server backed subcommands."""
    client = ServerClient(args.server, store)
    match args.subcommand:
        case "sendKey":
            client.send_key(args.email)
            print("Key saved")
        case "getKey":
            client.get_key(args.email)
            pspr("Key received")
        case "sendMsg":
            client.send_msg(args.email, args.plaintext)
            print("Message written")
        case "getMsg":
            print(client.get_msg(args.email))


def main(argv: list[str] | None = None) -> None:
    """Core Hybrid CLI/ICLI"""
    args = corep.parse_args(argv)
    nonint = args.non_interactive
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not nonint:
            print(text)

    pspr("Welcome to RSA Messenger!\n")
    try:
        if not args.subcommand:
            args.subcommand = choice_handler("subcommand", nonint)
        for reqs in needs[args.subcommand]:
            if getattr(args, reqs, None) is None:
                if help_dict[reqs].choices is not None:
                    res = choice_handler(reqs, nonint)
                else:
                    res = input_handler(reqs, nonint)
                setattr(args, reqs, res)
            else:
                pspr(f"{reqs}: {getattr(args, reqs)}")
        pspr("\nInput Complete! Executing...")
        store = DirectoryKeyStore(args.keydir)
        if args.subcommand == "keyGen":
            run_keygen(args, store, nonint, pspr)
        else:
            run_remote(args, store, pspr)
    except (MessengerError, IOError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    pspr("Thank you for using RSA Messenger!")


if __name__ == "__main__":
    main()
