import sys
import traceback

from colorama import Fore, Style, just_fix_windows_console

from assembler import assemble
from errors import AssemblyFailed, EvilStackError, VMRuntimeError
from io_bridge import ConsoleIO
from lexer import tokenize_source
from vm import VM

EXIT_USAGE = 1
EXIT_ASSEMBLY_ERROR = 2
EXIT_RUNTIME_ERROR = 3

USAGE = """Usage:
  python cli.py run <file.evs>
  python cli.py build <file.evs>
  python cli.py tokens <file.evs>
Options:
  --debug          show Python traceback on errors
  --trace          print every executed instruction to stderr
  --seed N         seed for `rand`
  --max-steps N    stop runaway programs after N instructions"""


def report_error(text):
    if sys.stderr.isatty():
        just_fix_windows_console()
        text = f"{Fore.RED}{text}{Style.RESET_ALL}"
    print(text, file=sys.stderr)


def read_source(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        report_error(f"Cannot read {path}: {e.strerror or e}")
        sys.exit(EXIT_USAGE)


def cmd_tokens(path, debug: bool = False):
    code = read_source(path)
    try:
        lines = tokenize_source(code)
    except EvilStackError as e:
        if debug:
            traceback.print_exc()
        else:
            report_error(f"Syntax error: {e}")
        sys.exit(EXIT_ASSEMBLY_ERROR)

    for line_no, tokens in enumerate(lines, start=1):
        if tokens:
            print(f"{line_no:4d}  {' '.join(repr(t) for t in tokens)}")


def cmd_build(path, debug: bool = False):
    code = read_source(path)
    try:
        program = assemble(code)
    except AssemblyFailed as e:
        if debug:
            traceback.print_exc()
        else:
            report_error(e.format())
        sys.exit(EXIT_ASSEMBLY_ERROR)

    print(program.listing())


def cmd_run(path, debug: bool = False, trace: bool = False, seed=None, max_steps=None):
    code = read_source(path)
    try:
        program = assemble(code)
    except AssemblyFailed as e:
        if debug:
            traceback.print_exc()
        else:
            report_error(e.format())
        sys.exit(EXIT_ASSEMBLY_ERROR)

    vm = VM(program, io=ConsoleIO(seed=seed))
    vm.trace_enabled = trace
    vm.max_steps = max_steps
    try:
        status = vm.run()
    except VMRuntimeError as e:
        if debug:
            traceback.print_exc()
        else:
            report_error(e.format())
        sys.exit(EXIT_RUNTIME_ERROR)

    sys.exit(status)


def take_int_option(args, name):
    if name not in args:
        return None
    i = args.index(name)
    if i + 1 >= len(args):
        print(f"{name} requires a value")
        sys.exit(EXIT_USAGE)
    raw = args[i + 1]
    del args[i : i + 2]
    try:
        return int(raw)
    except ValueError:
        print(f"{name} expects an integer, got {raw!r}")
        sys.exit(EXIT_USAGE)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)

    debug = "--debug" in args
    if debug:
        args.remove("--debug")
    trace = "--trace" in args
    if trace:
        args.remove("--trace")
    seed = take_int_option(args, "--seed")
    max_steps = take_int_option(args, "--max-steps")

    if len(args) != 2:
        print(USAGE)
        sys.exit(EXIT_USAGE)

    cmd, path = args

    if cmd == "run":
        cmd_run(path, debug=debug, trace=trace, seed=seed, max_steps=max_steps)
    elif cmd == "build":
        cmd_build(path, debug=debug)
    elif cmd == "tokens":
        cmd_tokens(path, debug=debug)
    else:
        print(f"Unknown command: {cmd}")
        print(USAGE)
        sys.exit(EXIT_USAGE)


if __name__ == "__main__":
    main()
