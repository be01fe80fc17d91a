"""Command-line entry points: ``irjit`` (run IR) and ``irjit-seal`` (embed IR)."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from irjit.config import RunConfig
from irjit.engine import initialize_native_backend
from irjit.errors import IRJitError
from irjit.invoker import report
from irjit.loader import parse
from irjit.pipeline import run
from irjit.sources import EncryptedBlob, LocalFile, RemoteResource
from irjit.sources.embedded import render_payload_module
from irjit.utils.crypto import encrypt, generate_key_material

logger = logging.getLogger(__name__)

LOAD_PREFIX = "--load="

USAGE = """\
Usage:
  irjit <LLVM IR file> [main-args...] [--load=shared-lib]
  irjit --remoteload <host> <path> [main-args...] [--load=shared-lib]
  irjit --embedded [main-args...] [--load=shared-lib]
"""


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.getLogger("irjit").setLevel(level)


def split_load_option(tokens: Sequence[str]) -> tuple[str | None, list[str]]:
    """Pull ``--load=<lib>`` out of *tokens*. The last occurrence wins."""
    library = None
    rest = []
    for tok in tokens:
        if tok.startswith(LOAD_PREFIX):
            library = tok[len(LOAD_PREFIX):]
        else:
            rest.append(tok)
    return library, rest


# ---------------------------------------------------------------------------
# irjit
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="irjit",
        description="JIT-compile an LLVM IR module and run its entry point.",
        epilog="--load=<shared-lib> is also accepted anywhere among main-args.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--remoteload", nargs=2, metavar=("HOST", "PATH"),
        help="fetch the IR with an HTTP GET from HOST at PATH",
    )
    source.add_argument(
        "--embedded", action="store_true",
        help="decrypt and run the IR payload bundled with irjit",
    )
    parser.add_argument("--load", metavar="LIB", help="shared library to load for symbols")
    parser.add_argument("--entry", default="main", help="entry point name (default: main)")
    parser.add_argument(
        "--no-host-symbols", action="store_true",
        help="do not resolve external references against the host process",
    )
    parser.add_argument("--argv0", metavar="NAME", help="prepend NAME as argv[0]")
    parser.add_argument(
        "-O", dest="opt_level", type=int, choices=range(4), default=2,
        help="code generation optimisation level (default: 2)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true")
    parser.add_argument(
        "args", nargs=argparse.REMAINDER,
        help="<LLVM IR file> followed by arguments passed to main",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.verbose, ns.quiet)

    library, tokens = split_load_option(ns.args)
    library = library or ns.load

    if ns.remoteload:
        host, path = ns.remoteload
        descriptor = RemoteResource(host=host, path=path)
    elif ns.embedded:
        descriptor = EncryptedBlob.embedded()
    elif tokens:
        descriptor = LocalFile(path=tokens.pop(0))
    else:
        sys.stderr.write(USAGE)
        return 1

    try:
        config = RunConfig.from_namespace(ns, library)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        initialize_native_backend()
        result = run(descriptor, tokens, config)
    except IRJitError as exc:
        print(f"irjit: {exc.stage} error: {exc}", file=sys.stderr)
        return 1

    report(result)
    return 0


# ---------------------------------------------------------------------------
# irjit-seal
# ---------------------------------------------------------------------------

def build_seal_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="irjit-seal",
        description="Encrypt an IR file into a payload module for 'irjit --embedded'.",
    )
    parser.add_argument("ir_file", help="textual (.ll) or bitcode (.bc) IR")
    key = parser.add_mutually_exclusive_group()
    key.add_argument("--key", help="key material as text (default: 32 random bytes)")
    key.add_argument("--key-file", help="read key material from a file")
    parser.add_argument(
        "-o", "--output", default="-",
        help="where to write the payload module (default: stdout)",
    )
    parser.add_argument(
        "--no-verify", action="store_true",
        help="skip parsing the IR before sealing it",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def seal_main(argv: Sequence[str] | None = None) -> int:
    ns = build_seal_parser().parse_args(argv)
    configure_logging(ns.verbose)

    try:
        with open(ns.ir_file, "rb") as f:
            plaintext = f.read()
        if ns.key_file:
            with open(ns.key_file, "rb") as f:
                key = f.read()
        elif ns.key:
            key = ns.key.encode("utf-8")
        else:
            key = generate_key_material()
    except OSError as exc:
        print(f"irjit-seal: {exc}", file=sys.stderr)
        return 1

    if not key:
        print("irjit-seal: key material is empty", file=sys.stderr)
        return 1

    if not ns.no_verify:
        try:
            parse(plaintext, name=ns.ir_file).dispose()
        except IRJitError as exc:
            print(f"irjit-seal: {exc.stage} error: {exc}", file=sys.stderr)
            return 1

    source = render_payload_module(encrypt(plaintext, key), key)
    if ns.output == "-":
        sys.stdout.write(source)
    else:
        try:
            with open(ns.output, "w", encoding="utf-8") as f:
                f.write(source)
        except OSError as exc:
            print(f"irjit-seal: {exc}", file=sys.stderr)
            return 1
        logger.info("Sealed %d bytes of IR into %s", len(plaintext), ns.output)
    return 0
