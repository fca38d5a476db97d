import argparse
import sys

from rbindgen import logging as rbindgen_logging
from rbindgen import utils
from rbindgen.bindgen import BindgenOptions, generate
from rbindgen.errors import BindgenError
from rbindgen.selector import LinkTarget, LinkType
from rbindgen.thirdparty import RustFmt


def split_clang_args(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split ``argv`` at the first ``--``; the rest goes to clang untouched."""
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def parse_generate(parser):
    parser.add_argument(
        'headers',
        nargs='+',
        help='The C header files to generate bindings for'
    )

    parser.add_argument(
        '--output',
        '-o',
        type=str,
        help='Write the bindings to this file instead of stdout'
    )

    parser.add_argument(
        '--config',
        '-c',
        type=str,
        dest='config_file',
        help='The configuration file to use'
    )

    parser.add_argument(
        '--match',
        action='append',
        dest='match_pat',
        metavar='PAT',
        help='Only emit declarations from files whose name contains PAT (repeatable)'
    )

    parser.add_argument(
        '--builtins',
        action='store_true',
        default=None,
        help='Also emit declarations provided by the compiler itself'
    )

    parser.add_argument(
        '--link',
        '-l',
        action='append',
        default=[],
        metavar='NAME',
        help='Link the emitted functions and variables against the dynamic library NAME'
    )

    parser.add_argument(
        '--static-link',
        action='append',
        default=[],
        metavar='NAME',
        help='Link against the static library NAME'
    )

    parser.add_argument(
        '--framework-link',
        action='append',
        default=[],
        metavar='NAME',
        help='Link against the framework NAME'
    )

    parser.add_argument(
        '--fail-on-unknown-type',
        action='store_true',
        default=None,
        help='Abort instead of emitting an opaque placeholder for unmappable C types'
    )

    parser.add_argument(
        '--override-enum-type',
        type=str,
        dest='override_enum_ty',
        metavar='KIND',
        help='Represent every enum with KIND (uchar, schar, ushort, sshort, uint, sint, ulong, slong, ulonglong, slonglong)'
    )

    parser.add_argument(
        '--emit-ast',
        action='store_true',
        default=None,
        help='Dump the clang cursor tree to the log'
    )

    parser.add_argument(
        '--rustfmt',
        action='store_true',
        help='Format the bindings with rustfmt'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Console log level (DEBUG, INFO, WARNING, ERROR)'
    )


def run_generate(parser, args, clang_args):
    try:
        config = utils.try_load_config(args.config_file)
    except (FileNotFoundError, TypeError, ValueError) as e:
        parser.error(str(e))

    rbindgen_logging.configure_logging(
        config,
        console_level_override=args.log_level,
        force_reconfigure=True,
        console_stream=sys.stderr,
    )

    links = [LinkTarget(name) for name in args.link]
    links.extend(LinkTarget(name, LinkType.STATIC) for name in args.static_link)
    links.extend(LinkTarget(name, LinkType.FRAMEWORK) for name in args.framework_link)

    configured_args = list(config.get('bindgen', {}).get('clang_args', []))
    try:
        options = BindgenOptions.from_config(
            config,
            match_pat=args.match_pat,
            builtins=args.builtins,
            fail_on_unknown_type=args.fail_on_unknown_type,
            override_enum_ty=args.override_enum_ty,
            emit_ast=args.emit_ast,
            clang_args=configured_args + clang_args + args.headers,
        )
    except (TypeError, ValueError) as e:
        parser.error(str(e))
    options.links.extend(links)

    if args.rustfmt:
        try:
            RustFmt.ensure_available()
        except OSError as e:
            parser.error(str(e))

    try:
        bindings = generate(options, rbindgen_logging.StdLogger())
    except BindgenError as e:
        print(f'❌ {e}', file=sys.stderr)
        sys.exit(1)

    text = bindings.to_text()
    try:
        if args.output:
            utils.save_code(args.output, text)
            if args.rustfmt:
                RustFmt().format(args.output)
        else:
            if args.rustfmt:
                text = RustFmt().format_code(text)
            sys.stdout.write(text)
    except OSError as e:
        print(f'❌ {e}', file=sys.stderr)
        sys.exit(1)


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    argv, clang_args = split_clang_args(argv)

    parser = argparse.ArgumentParser(
        prog='rbindgen',
        description='rbindgen: generate Rust FFI bindings from C headers',
        epilog='Arguments after -- are passed to clang unchanged.'
    )
    parse_generate(parser)
    args = parser.parse_args(argv)

    run_generate(parser, args, clang_args)


if __name__ == '__main__':
    main()
