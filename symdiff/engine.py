"""
Derivative Engine for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Holds a priority-sorted list of DerivativeRule objects and differentiates an
expression tree by dispatching each node to the first rule that matches.

Example:
    from symdiff import DerivativeEngine, parse

    engine = DerivativeEngine()
    engine.differentiate(parse("x^3"), "x")           # 3×x^2

    result, trace = engine.differentiate(parse("x*sin(x)"), "x", trace=True)
    print(trace.format("rules"))   # product -> variable -> sin -> variable

Groups:
    Every built-in rule is tagged with its family. Disabling a family makes
    nodes of that shape undifferentiable (a CalculationError), which is
    occasionally useful for checking what a rule set covers.
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

from .errors import CalculationError
from .nodes import NodeType, to_string
from .rules import DerivativeRule, default_rules

logger = logging.getLogger(__name__)


class DerivationStep:
    """A single rule application while differentiating."""

    def __init__(self, rule: DerivativeRule, before: NodeType,
                 after: Optional[NodeType] = None, depth: int = 0):
        self.rule = rule
        self.before = before
        self.after = after
        self.depth = depth

    def __repr__(self) -> str:
        after = to_string(self.after) if self.after is not None else "?"
        return f"{self.rule.name}: d({to_string(self.before)}) → {after}"

    def to_dict(self) -> Dict:
        """Convert step to dictionary for serialization."""
        return {
            "rule_name": self.rule.name,
            "priority": self.rule.priority,
            "description": self.rule.description,
            "before": to_string(self.before),
            "after": to_string(self.after) if self.after is not None else None,
            "depth": self.depth,
        }


class DerivationTrace:
    """
    A record of every rule applied during one differentiation.

    Steps are stored in pre-order: a rule appears before the rules it
    invoked for its subexpressions.

    Provides multiple formatting options:
        - format("verbose"): one numbered line per step (default)
        - format("compact"): single line with the rule chain
        - format("rules"): just the rule names applied
        - format("tree"): steps indented by recursion depth
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, variable: str = "x"):
        self.variable = variable
        self.steps: List[DerivationStep] = []
        self.initial: Optional[NodeType] = None
        self.final: Optional[NodeType] = None

    def add_step(self, step: DerivationStep):
        self.steps.append(step)

    def format(self, style: str = "verbose") -> str:
        """
        Format the trace in different styles.

        Args:
            style: One of "verbose", "compact", "rules", "tree"

        Returns:
            Formatted string representation of the trace.
        """
        if style == "compact":
            rules = ", ".join(self.rules_applied())
            return (f"d/d{self.variable} {to_string(self.initial)} "
                    f"--[{rules}]--> {to_string(self.final)}")

        elif style == "rules":
            rules = self.rules_applied()
            return " -> ".join(rules) if rules else "(no rules applied)"

        elif style == "tree":
            return "\n".join("  " * step.depth + repr(step) for step in self.steps)

        else:  # verbose (default)
            return repr(self)

    def __repr__(self) -> str:
        lines = [f"Initial: {to_string(self.initial) if self.initial is not None else None}"]
        for i, step in enumerate(self.steps, 1):
            lines.append(f"  {i}. {step}")
        lines.append(f"Final: {to_string(self.final) if self.final is not None else None}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        """Iterate over derivation steps."""
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rule was applied."""
        return len(self.steps) > 0

    def to_dict(self) -> Dict:
        """Convert trace to dictionary for JSON serialization."""
        return {
            "variable": self.variable,
            "initial": to_string(self.initial) if self.initial is not None else None,
            "final": to_string(self.final) if self.final is not None else None,
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }

    def rule_counts(self) -> Dict[str, int]:
        """Count how many times each rule was applied."""
        counts: Dict[str, int] = {}
        for step in self.steps:
            counts[step.rule.name] = counts.get(step.rule.name, 0) + 1
        return counts

    def rules_applied(self) -> List[str]:
        """Get list of rule names in order of application."""
        return [step.rule.name for step in self.steps]

    def summary(self) -> str:
        """Get a brief summary of the derivation."""
        if not self.steps:
            return "No rules applied"
        counts = self.rule_counts()
        most_used = max(counts.items(), key=lambda x: x[1])
        return (f"{len(self.steps)} steps using {len(counts)} unique rules. "
                f"Most used: {most_used[0]} ({most_used[1]}x)")


class _TracingDerivation:
    """Per-call stand-in for the engine that records each rule it dispatches."""

    def __init__(self, engine: 'DerivativeEngine', trace: DerivationTrace):
        self.engine = engine
        self.trace = trace
        self.depth = 0

    def differentiate(self, node: NodeType, variable: str) -> NodeType:
        rule = self.engine.find_rule(node, variable)
        step = DerivationStep(rule, node, depth=self.depth)
        self.trace.add_step(step)
        self.depth += 1
        try:
            step.after = rule.apply(node, variable, self)
        finally:
            self.depth -= 1
        return step.after


class DerivativeEngine:
    """
    A registry of prioritized derivative rules.

    Rules are kept sorted by descending priority; the first active rule
    whose ``matches`` accepts a node decides its derivative. The engine
    keeps no per-call state, so one instance can serve concurrent callers.
    """

    def __init__(self, rules: Optional[List[DerivativeRule]] = None):
        """
        Initialize a DerivativeEngine.

        Args:
            rules: Rules to register. Default: the built-in rule table.
        """
        self._rules: List[DerivativeRule] = []
        self._rule_names: Dict[str, int] = {}
        self._disabled_groups: set = set()
        self._rules.extend(default_rules() if rules is None else rules)
        self._sort_by_priority()

    def _sort_by_priority(self) -> None:
        """Sort rules by priority (descending). Higher priority fires first.

        Uses stable sort, so rules with equal priority maintain their relative order.
        """
        indexed = [(rule.priority, i, rule) for i, rule in enumerate(self._rules)]
        indexed.sort(key=lambda x: (-x[0], x[1]))
        self._rules = [item[2] for item in indexed]

        self._rule_names = {}
        for idx, rule in enumerate(self._rules):
            self._rule_names[rule.name] = idx

    def add_rule(self, rule: DerivativeRule) -> 'DerivativeEngine':
        """Register a rule and re-sort; returns self for chaining."""
        self._rules.append(rule)
        self._sort_by_priority()
        return self

    def get_rule(self, name: str) -> Optional[DerivativeRule]:
        """Get a rule by name."""
        if name in self._rule_names:
            return self._rules[self._rule_names[name]]
        return None

    # ============================================================
    # Group Management
    # ============================================================

    def disable_group(self, group: str) -> 'DerivativeEngine':
        """Disable all rules in a group."""
        self._disabled_groups.add(group)
        return self

    def enable_group(self, group: str) -> 'DerivativeEngine':
        """Enable all rules in a group."""
        self._disabled_groups.discard(group)
        return self

    def groups(self) -> set:
        """Return all group names used by rules."""
        all_groups = set()
        for rule in self._rules:
            all_groups.update(rule.tags)
        return all_groups

    def _is_rule_active(self, rule: DerivativeRule) -> bool:
        if not rule.tags:
            return True
        return not any(g in self._disabled_groups for g in rule.tags)

    # ============================================================
    # Dispatch
    # ============================================================

    def rules_matching(self, node: NodeType, variable: str = "x") -> List[DerivativeRule]:
        """
        Find all active rules that accept a node, in dispatch order.

        Useful for seeing which rule shadows which.
        """
        return [rule for rule in self._rules
                if self._is_rule_active(rule) and rule.matches(node, variable)]

    def find_rule(self, node: NodeType, variable: str) -> DerivativeRule:
        """
        Return the rule that would differentiate a node.

        Raises:
            CalculationError: if no active rule matches.
        """
        for rule in self._rules:
            if self._is_rule_active(rule) and rule.matches(node, variable):
                return rule
        raise CalculationError(f"cannot differentiate {to_string(node)}", node)

    def differentiate(
        self,
        node: NodeType,
        variable: str = "x",
        trace: bool = False,
    ) -> Union[NodeType, Tuple[NodeType, DerivationTrace]]:
        """
        Differentiate a tree with respect to a variable.

        Args:
            node: Expression tree
            variable: Variable name to differentiate by
            trace: If True, return (result, DerivationTrace)

        Returns:
            The raw (unsimplified) derivative, or (derivative, trace).

        Raises:
            CalculationError: if some node has no matching rule.
        """
        if trace:
            recorder = DerivationTrace(variable)
            recorder.initial = node
            recorder.final = _TracingDerivation(self, recorder).differentiate(node, variable)
            return recorder.final, recorder

        rule = self.find_rule(node, variable)
        logger.debug("%r matched %s", rule, to_string(node))
        return rule.apply(node, variable, self)

    @property
    def rules(self) -> List[DerivativeRule]:
        """Get all rules in dispatch order."""
        return self._rules.copy()

    def list_rules(self) -> List[str]:
        """List rules with priority, description and groups."""
        result = []
        for rule in self._rules:
            line = repr(rule)
            if rule.tags:
                line += f" [{', '.join(rule.tags)}]"
            if not self._is_rule_active(rule):
                line += " (disabled)"
            result.append(line)
        return result

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"DerivativeEngine({len(self._rules)} rules)"

    def __call__(self, node: NodeType, variable: str = "x", **kwargs):
        """Make engine callable: engine(node) is shorthand for engine.differentiate(node)."""
        return self.differentiate(node, variable, **kwargs)

    def __iter__(self):
        """Iterate over rules in dispatch order."""
        return iter(self._rules)

    def __contains__(self, name: str) -> bool:
        """Check if a named rule exists: 'product' in engine."""
        return name in self._rule_names

    def __getitem__(self, name: str) -> DerivativeRule:
        """Get rule by name: engine['product']."""
        if name not in self._rule_names:
            raise KeyError(f"No rule named '{name}'")
        return self._rules[self._rule_names[name]]

    @classmethod
    def from_rules(cls, rules: List[DerivativeRule]) -> 'DerivativeEngine':
        """Create engine from an explicit rule list."""
        return cls(rules=list(rules))

    def copy(self) -> 'DerivativeEngine':
        """Create a copy of this engine, including disabled groups."""
        new_engine = DerivativeEngine(rules=self._rules)
        new_engine._disabled_groups = set(self._disabled_groups)
        return new_engine
