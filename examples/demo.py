#!/usr/bin/env python3
"""
SYMDIFF Feature Demonstration

This script demonstrates the major features of the SYMDIFF library.
"""

from symdiff import (
    CalculusEngine, DerivativeEngine, DerivativeRule, Function, Number,
    compute_derivative, parse, simplify, to_string,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_basic_usage():
    """Differentiate a few expressions."""
    section("Basic Usage")

    examples = [
        "x^3",
        "3x^2 + 2x - 1",
        "x*sin(x)",
        "1/x",
        "(2x)^3",
        "x^x",
        "exp(x^2)",
        "arctan(x)",
    ]

    for text in examples:
        result = compute_derivative(text)
        print(f"  d/dx {text:<16} = {result.text}")
        print(f"  d²/dx² {'':<14} = {result.second_text}")


def demo_forms():
    """Show every display form of a derivative."""
    section("Display Forms")

    for text in ["x^2*ln(x)", "x^x", "sin(x)/cos(x)", "sin(x)^2"]:
        result = compute_derivative(text)
        print(f"  d/dx {text}")
        for form in result.forms:
            marker = "*" if form is result.forms.best() else " "
            print(f"   {marker} {form.form_type.label:<14} {form.text}")


def demo_simplify():
    """Simplify expressions without differentiating."""
    section("Simplification")

    for text in ["2x+3x", "x-x", "x*x", "(x+1)^2", "6x^3/(4x)", "x^2/x+0"]:
        print(f"  {text:<12} => {to_string(simplify(parse(text)))}")


def demo_variables():
    """Differentiate by a variable other than x."""
    section("Other Variables")

    for text, variable in [("t^2 + x*t", "t"), ("y^2 + x", "x"), ("a*x^2", "a")]:
        result = compute_derivative(text, variable)
        print(f"  d/d{variable} {text:<10} = {result.text}")


def demo_tracing():
    """Show which rules produced a derivative."""
    section("Tracing")

    engine = DerivativeEngine()
    result, trace = engine.differentiate(parse("x*sin(x)"), "x", trace=True)

    print(f"  Raw result: {to_string(result)}")
    print(f"  Rules: {trace.format('rules')}")
    print(f"  Summary: {trace.summary()}")
    print("\n  Tree:")
    for line in trace.format("tree").splitlines():
        print(f"    {line}")


def demo_groups():
    """Enable and disable rule families."""
    section("Rule Groups")

    calculus = CalculusEngine()
    print(f"  Groups: {', '.join(sorted(calculus.engine.groups()))}")

    calculus.engine.disable_group("trig")
    result = calculus.compute_derivative("sin(x)")
    print(f"  trig disabled: sin(x) => {result.message}")

    calculus.engine.enable_group("trig")
    result = calculus.compute_derivative("sin(x)")
    print(f"  trig enabled:  sin(x) => {result.text}")


def demo_custom_rule():
    """Register a rule with a higher priority than the built-ins."""
    section("Custom Rules")

    # sinh is not a built-in function, so it is built by hand
    engine = DerivativeEngine().add_rule(DerivativeRule(
        "sinh", 70,
        lambda node, v: isinstance(node, Function) and node.name == "sinh",
        lambda node, v, e: Function("cosh", node.argument),
        "d(sinh(u)) = cosh(u), for u = x only",
    ))
    node = Function("sinh", parse("x"))
    print(f"  {engine['sinh']!r}")
    print(f"  d/dx {to_string(node)} = {to_string(engine.differentiate(node))}")
    print(f"  d/dx 7 = {to_string(engine.differentiate(Number(7)))}")


def demo_errors():
    """Bad input never raises from compute_derivative."""
    section("Errors")

    for text in ["", "2x +", "(x+1", "3 $ 4"]:
        result = compute_derivative(text)
        print(f"  {text!r:<10} => {result.message}")


def demo_graph():
    """Sample a function and its derivatives."""
    section("Graph Data")

    data = CalculusEngine().graph("x^3 - 3x", -3.0, 3.0, 0.05)
    print(f"  {data!r}")
    for point in data.critical_points + data.inflection_points:
        print(f"    {point}")


def main():
    """Run all demonstrations."""
    print("SYMDIFF - Symbolic Differentiation via Prioritized Rules")
    print("Feature Demonstration")

    demo_basic_usage()
    demo_forms()
    demo_simplify()
    demo_variables()
    demo_tracing()
    demo_groups()
    demo_custom_rule()
    demo_errors()
    demo_graph()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
