#!/usr/bin/env python3
"""
SYMDIFF Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    symdiff                          # Start REPL
    symdiff script.sd                # Run script
    symdiff -e "x^3"                 # Differentiate one expression
    symdiff -e "t^2" -v t            # ... by another variable
    symdiff -e "sin(x)" --at 0       # ... and evaluate at a point
    echo "x^3" | symdiff             # Filter mode

Script Format (.sd files):
    #!/usr/bin/env symdiff
    :var x
    :forms on

    x^3
    x*sin(x)

REPL Commands:
    :help              Show help
    :var NAME          Set the differentiation variable
    :trace on|off      Show which rules fired
    :forms on|off      Show every display form
    :second on|off     Also compute the second derivative
    :at X              Evaluate the last expression and derivatives at X
    :rules             List derivative rules
    :groups            Show rule groups
    :enable GROUP      Enable group
    :disable GROUP     Disable group
    :quit              Exit
"""

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .calculus import CalculusEngine, DEFAULT_VARIABLE, Success
from .evaluator import evaluate
from .nodes import format_number

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False


class SymdiffCompleter:
    """Tab completer for the SYMDIFF REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":var", ":trace", ":forms", ":second", ":at",
        ":rules", ":groups", ":enable", ":disable",
    ]

    TOGGLE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'SymdiffREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)
        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> List[str]:
        line = line.lstrip()

        if line.startswith((":trace ", ":forms ", ":second ")):
            return [t for t in self.TOGGLE_OPTIONS if t.startswith(text)]

        if line.startswith(":enable ") or line.startswith(":disable "):
            groups = sorted(self.repl.calculus.engine.groups())
            return [g for g in groups if g.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


def _toggle(current: bool, arg: str) -> bool:
    if arg.lower() in ("on", "true", "1"):
        return True
    if arg.lower() in ("off", "false", "0"):
        return False
    return not current


class SymdiffREPL:
    """Interactive REPL for symdiff."""

    def __init__(self, calculus: Optional[CalculusEngine] = None):
        self.calculus = calculus or CalculusEngine()
        self.variable = DEFAULT_VARIABLE
        self.trace = False
        self.show_forms = False
        self.last_result: Optional[Success] = None
        self.running = True

        if HAS_READLINE:
            self.history_file = Path.home() / ".symdiff_history"
            try:
                readline.read_history_file(self.history_file)
            except (FileNotFoundError, OSError):
                pass
            readline.set_history_length(1000)

            self.completer = SymdiffCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n")

    @property
    def second(self) -> bool:
        return self.calculus.second_derivative

    @second.setter
    def second(self, value: bool):
        self.calculus.second_derivative = value

    def save_history(self):
        """Save readline history."""
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError:
                pass

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "var":
            if not arg or not arg.isalpha():
                return "Usage: :var NAME"
            self.variable = arg
            return f"Differentiating by {arg}"

        elif cmd == "trace":
            self.trace = _toggle(self.trace, arg)
            return f"Tracing {'enabled' if self.trace else 'disabled'}"

        elif cmd == "forms":
            self.show_forms = _toggle(self.show_forms, arg)
            return f"All forms {'shown' if self.show_forms else 'hidden'}"

        elif cmd == "second":
            self.second = _toggle(self.second, arg)
            return f"Second derivative {'enabled' if self.second else 'disabled'}"

        elif cmd == "at":
            return self.evaluate_at(arg)

        elif cmd == "rules":
            return "\n".join(self.calculus.engine.list_rules())

        elif cmd == "groups":
            return "Groups: " + ", ".join(sorted(self.calculus.engine.groups()))

        elif cmd == "enable":
            if not arg:
                return "Usage: :enable GROUP"
            if arg not in self.calculus.engine.groups():
                return f"Unknown group: {arg}"
            self.calculus.engine.enable_group(arg)
            return f"Enabled group: {arg}"

        elif cmd == "disable":
            if not arg:
                return "Usage: :disable GROUP"
            if arg not in self.calculus.engine.groups():
                return f"Unknown group: {arg}"
            self.calculus.engine.disable_group(arg)
            return f"Disabled group: {arg}"

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """SYMDIFF REPL Commands:
  :help              Show this help
  :var NAME          Set the differentiation variable (now: {var})
  :trace on|off      Show which derivative rules fired
  :forms on|off      Show every display form, not just the best
  :second on|off     Also compute the second derivative
  :at X              Evaluate the last expression and derivatives at X
  :rules             List derivative rules
  :groups            Show rule groups
  :enable GROUP      Enable a rule group
  :disable GROUP     Disable a rule group
  :quit              Exit

Syntax:
  3x^2 + 2x - 1        Implicit multiplication: 3x, 2(x+1), (x+1)(x-1)
  sin(x) cos(x)        sin cos tan cot sec csc, arcsin..arccsc
  ln(x) log(x) exp(x)  log is base 10
  sqrt(x) abs(x)       π and e are constants
""".format(var=self.variable)

    def evaluate_at(self, arg: str) -> str:
        if self.last_result is None:
            return "Nothing to evaluate yet"
        try:
            x = float(arg)
        except ValueError:
            return "Usage: :at NUMBER"

        result = self.last_result
        v = result.variable
        lines = [f"f({arg}) = {self._format_value(evaluate(result.expression, x, v))}",
                 f"f'({arg}) = {self._format_value(evaluate(result.derivative, x, v))}"]
        if result.second_derivative is not None:
            value = evaluate(result.second_derivative, x, v)
            lines.append(f"f''({arg}) = {self._format_value(value)}")
        return "\n".join(lines)

    @staticmethod
    def _format_value(value: float) -> str:
        if math.isnan(value):
            return "undefined"
        return format_number(round(value, 10))

    def format_result(self, result: Success) -> str:
        v = result.variable
        lines = [f"d/d{v} = {result.text}"]
        if self.show_forms:
            for form in result.forms.display_forms():
                lines.append(f"  {form.form_type.label}: {form.text}")
        if result.second_text is not None:
            lines.append(f"d²/d{v}² = {result.second_text}")
            if self.show_forms:
                for form in result.second_forms.display_forms():
                    lines.append(f"  {form.form_type.label}: {form.text}")
        if self.trace and result.trace:
            lines.append(result.trace.format("rules"))
        return "\n".join(lines)

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        # Empty line or comment
        if not line or line.startswith("#"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        result = self.calculus.compute_derivative(line, self.variable, trace=self.trace)
        if not result.is_success:
            return f"Error: {result.message}"
        self.last_result = result
        return self.format_result(result)

    def run(self):
        """Run the REPL loop."""
        print("SYMDIFF - Symbolic Differentiation via Prioritized Rules")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                line = input(f"d/d{self.variable}> ")
                result = self.process_line(line)
                if result:
                    print(result)
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                continue

        self.save_history()


class ScriptRunner:
    """Runs symdiff scripts."""

    def __init__(self):
        self.repl = SymdiffREPL()

    def run_script(self, path: Path, quiet: bool = False) -> int:
        """
        Run a script file.

        Args:
            path: Path to the script
            quiet: If True, print only the derivative text

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1

        for lineno, line in enumerate(lines, 1):
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            if line.startswith(":"):
                result = self.repl.handle_command(line)
                if result and ("Unknown" in result or "Usage" in result):
                    print(f"{path}:{lineno}: {result}", file=sys.stderr)
                    return 1
                if result and line.startswith(":at"):
                    print(result)
                continue

            if self._emit(line, quiet, prefix=f"{path}:{lineno}: ") != 0:
                return 1

        return 0

    def _emit(self, line: str, quiet: bool, prefix: str = "") -> int:
        if quiet:
            result = self.repl.calculus.compute_derivative(line, self.repl.variable)
            if not result.is_success:
                print(f"{prefix}Error: {result.message}", file=sys.stderr)
                return 1
            self.repl.last_result = result
            print(result.text)
            return 0

        output = self.repl.process_line(line)
        if output is None:
            return 0
        if output.startswith("Error"):
            print(f"{prefix}{output}", file=sys.stderr)
            return 1
        print(output)
        return 0

    def run_expression(self, expr_str: str, quiet: bool = False) -> int:
        """
        Differentiate a single expression.

        Returns:
            Exit code (0 for success)
        """
        return self._emit(expr_str, quiet)

    def run_stdin(self, quiet: bool = False) -> int:
        """
        Read expressions from stdin and differentiate them.

        Returns:
            Exit code (0 for success)
        """
        status = 0
        for line in sys.stdin:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith(":"):
                message = self.repl.handle_command(line)
                if message and line.startswith(":at"):
                    print(message)
                continue
            status = self._emit(line, quiet) or status
        return status


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="symdiff",
        description="SYMDIFF - Symbolic Differentiation via Prioritized Rules",
        epilog="Examples:\n"
               "  symdiff                        Start REPL\n"
               "  symdiff script.sd              Run script\n"
               "  symdiff -e 'x^3'               Differentiate an expression\n"
               "  symdiff -e 't^2' -v t          Differentiate by t\n"
               "  symdiff -e 'sin(x)' --at 0     Evaluate f, f', f'' at 0\n"
               "  echo 'x^3' | symdiff           Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run (.sd)"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Differentiate a single expression"
    )

    parser.add_argument(
        "-v", "--variable",
        default=DEFAULT_VARIABLE,
        help="Variable to differentiate by (default: x)"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Show which derivative rules fired"
    )

    parser.add_argument(
        "-f", "--forms",
        action="store_true",
        help="Show every display form"
    )

    parser.add_argument(
        "--no-second",
        action="store_true",
        help="Skip the second derivative"
    )

    parser.add_argument(
        "--at",
        type=float,
        help="Evaluate the expression and its derivatives at this point"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (print only the derivative)"
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")

    runner = ScriptRunner()
    repl = runner.repl
    if not args.variable.isalpha():
        print(f"Invalid variable name: {args.variable}", file=sys.stderr)
        sys.exit(2)
    repl.variable = args.variable
    repl.trace = args.trace
    repl.show_forms = args.forms
    repl.second = not args.no_second

    if args.script:
        sys.exit(runner.run_script(Path(args.script), quiet=args.quiet))

    elif args.expr:
        status = runner.run_expression(args.expr, quiet=args.quiet)
        if status == 0 and args.at is not None:
            print(repl.evaluate_at(format_number(args.at)))
        sys.exit(status)

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin(quiet=args.quiet))

    else:
        repl.run()


if __name__ == "__main__":
    main()
