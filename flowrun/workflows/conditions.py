"""
Safe evaluation of condition expressions.

Condition nodes carry a JavaScript-flavoured boolean expression, authored in
the editor, for example::

    {{@t1:Trigger.value}} > 10 && {{@n2:Fetch.status}} === "ok"

Evaluation happens in four stages:

  1. whitelist the raw text (template markers masked out)
  2. replace each ``{{@nodeId:Rest}}`` with a synthetic variable ``__vN`` bound
     to the *resolved value*, so data is never re-parsed as expression text
  3. whitelist the substituted text again
  4. parse with a small recursive-descent parser and interpret the tree

Every failure at any stage evaluates to ``False``. Nothing here raises.

Grammar::

    expr       := or
    or         := and ( "||" and )*
    and        := equality ( "&&" equality )*
    equality   := relational ( ("==" | "!=" | "===" | "!==") relational )*
    relational := unary ( ("<" | "<=" | ">" | ">=") unary )*
    unary      := "!" unary | "-" unary | postfix
    postfix    := primary ( "." IDENT [ "(" [ expr ] ")" ] | "[" (NUMBER | STRING) "]" )*
    primary    := NUMBER | STRING | true | false | null | undefined | VAR | "(" expr ")"
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, NamedTuple, Optional

from flowrun.exceptions import ConditionError
from flowrun.types import NodeOutput
from flowrun.workflows.template import (
    CANONICAL_PATTERN,
    UNRESOLVED,
    find_output,
    resolve_field_path,
)

logger = logging.getLogger(__name__)

_MAX_EXPRESSION_LENGTH = 2000

ALLOWED_METHODS: frozenset[str] = frozenset({
    "includes", "startsWith", "endsWith", "toString", "toLowerCase", "toUpperCase", "trim",
})

_LITERALS = {"true": True, "false": False, "null": None}

# Rejected as identifiers or property names, case-insensitively. String
# literals are data and never checked.
_DANGEROUS_KEYWORDS = frozenset({
    "eval", "function", "import", "require", "process", "global", "window",
    "document", "__proto__", "constructor", "prototype",
})

_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("NUMBER", r"\d+(?:\.\d+)?"),
    ("STRING", r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'"),
    ("OP", r"===|!==|==|!=|<=|>=|&&|\|\||[<>!\-().\[\]]"),
    ("IDENT", r"[A-Za-z_$][A-Za-z0-9_$]*"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))
_STRING_RE = re.compile(dict(_TOKEN_SPEC)["STRING"])
_VAR_RE = re.compile(r"^__v\d+$")
_MASK = " 0 "


class _Undefined:
    """JavaScript ``undefined``: missing property, distinct from ``null``."""

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class Token(NamedTuple):
    kind: str
    text: str
    pos: int


class ConditionOutcome(NamedTuple):
    value: bool
    error: Optional[str] = None


# ── Tokenizing + whitelist ────────────────────────────────────────────────────


def tokenize(expression: str) -> list[Token]:
    """Split *expression* into tokens. Raises ConditionError on any other character."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(expression):
        m = _TOKEN_RE.match(expression, pos)
        if m is None:
            raise ConditionError(
                f"Condition contains disallowed syntax at position {pos}: {expression[pos:pos + 10]!r}",
                expression=expression,
            )
        kind = m.lastgroup
        if kind != "WS":
            tokens.append(Token(kind, m.group(), pos))
        pos = m.end()
    return tokens


def validate_expression(expression: str, bound: frozenset[str] = frozenset()) -> list[Token]:
    """Whitelist check. Returns the token list, raises ConditionError if rejected.

    Identifiers are limited to the literals, ``__vN`` names in *bound*, and
    property names that follow a ``.``; a property followed by ``(`` must be
    one of ``ALLOWED_METHODS``.
    """
    if not expression or not expression.strip():
        raise ConditionError("Condition expression cannot be empty", expression=expression)
    if len(expression) > _MAX_EXPRESSION_LENGTH:
        raise ConditionError("Condition expression is too long", expression=expression)

    tokens = tokenize(expression)
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.text == "(":
            depth += 1
        elif tok.text == ")":
            depth -= 1
            if depth < 0:
                raise ConditionError("Unbalanced parentheses in condition", expression=expression)
        if tok.kind != "IDENT":
            continue
        if tok.text.lower() in _DANGEROUS_KEYWORDS:
            raise ConditionError(f"Condition contains disallowed keyword: {tok.text!r}", expression=expression)

        after_dot = i > 0 and tokens[i - 1].text == "."
        is_call = i + 1 < len(tokens) and tokens[i + 1].text == "("
        if tok.text.startswith("__") and not (_VAR_RE.match(tok.text) and tok.text in bound):
            raise ConditionError(f"Identifier {tok.text!r} is not allowed in conditions", expression=expression)
        if after_dot:
            if is_call and tok.text not in ALLOWED_METHODS:
                raise ConditionError(
                    f"Method {tok.text!r} is not allowed in conditions. "
                    f"Allowed methods: {', '.join(sorted(ALLOWED_METHODS))}",
                    expression=expression,
                )
            continue
        if tok.text in _LITERALS or tok.text == "undefined" or tok.text in bound:
            continue
        raise ConditionError(
            f"Unknown identifier {tok.text!r} in condition. "
            "Use template variables like {{@nodeId:Label.field}} to reference workflow data.",
            expression=expression,
        )
    if depth != 0:
        raise ConditionError("Unbalanced parentheses in condition", expression=expression)
    return tokens


def pre_validate_expression(expression: str) -> None:
    """Cheap check on the raw text, before any template substitution."""
    masked = CANONICAL_PATTERN.sub(_MASK, expression)
    code = _STRING_RE.sub('""', masked)
    if "=>" in code or "`" in code or ";" in code:
        raise ConditionError("Condition contains disallowed syntax", expression=expression)
    validate_expression(masked)


# ── Substitution ──────────────────────────────────────────────────────────────


def bind_references(expression: str, outputs: Mapping[str, NodeOutput]) -> tuple[str, dict[str, Any]]:
    """Replace each resolvable ``{{@nodeId:Rest}}`` with a fresh ``__vN`` variable.

    Unresolvable references stay in the text and fail the second whitelist pass.
    """
    context: dict[str, Any] = {}

    def _replace(match: re.Match) -> str:
        node_id, rest = match.group(1), match.group(2)
        output = find_output(node_id, outputs)
        if output is None:
            logger.debug(f"[Condition] Output not found for node {node_id!r}")
            return match.group(0)
        dot = rest.find(".")
        if dot == -1:
            value = output.data
        else:
            value = resolve_field_path(output.data, rest[dot + 1:], broadcast=False, missing=UNDEFINED)
            if value is UNRESOLVED:
                logger.debug(f"[Condition] Field access failed: {rest[dot + 1:]!r}")
                return match.group(0)
        name = f"__v{len(context)}"
        context[name] = value
        return f" {name} "

    return CANONICAL_PATTERN.sub(_replace, expression), context


# ── Parser ────────────────────────────────────────────────────────────────────


class _Parser:
    """Recursive-descent parser producing a tuple-based tree."""

    def __init__(self, tokens: list[Token], expression: str):
        self.tokens = tokens
        self.expression = expression
        self.i = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ConditionError("Unexpected end of condition", expression=self.expression)
        self.i += 1
        return tok

    def _expect(self, text: str) -> Token:
        tok = self._next()
        if tok.text != text:
            raise ConditionError(f"Expected {text!r} at position {tok.pos}", expression=self.expression)
        return tok

    def _accept(self, *texts: str) -> Optional[Token]:
        tok = self._peek()
        if tok is not None and tok.kind == "OP" and tok.text in texts:
            self.i += 1
            return tok
        return None

    def parse(self):
        node = self._or()
        if self._peek() is not None:
            tok = self._peek()
            raise ConditionError(f"Unexpected token {tok.text!r} at position {tok.pos}", expression=self.expression)
        return node

    def _or(self):
        node = self._and()
        while self._accept("||"):
            node = ("or", node, self._and())
        return node

    def _and(self):
        node = self._equality()
        while self._accept("&&"):
            node = ("and", node, self._equality())
        return node

    def _equality(self):
        node = self._relational()
        while True:
            tok = self._accept("===", "!==", "==", "!=")
            if tok is None:
                return node
            node = ("cmp", tok.text, node, self._relational())

    def _relational(self):
        node = self._unary()
        while True:
            tok = self._accept("<=", ">=", "<", ">")
            if tok is None:
                return node
            node = ("cmp", tok.text, node, self._unary())

    def _unary(self):
        if self._accept("!"):
            return ("not", self._unary())
        if self._accept("-"):
            return ("neg", self._unary())
        return self._postfix()

    def _postfix(self):
        node = self._primary()
        while True:
            if self._accept("."):
                name = self._next()
                if name.kind != "IDENT":
                    raise ConditionError(f"Expected property name at position {name.pos}", expression=self.expression)
                if self._accept("("):
                    args = []
                    if not self._accept(")"):
                        args.append(self._or())
                        self._expect(")")
                    node = ("call", node, name.text, args)
                else:
                    node = ("prop", node, name.text)
            elif self._accept("["):
                key = self._next()
                if key.kind == "NUMBER" and "." not in key.text:
                    node = ("index", node, int(key.text))
                elif key.kind == "STRING":
                    node = ("index", node, _unquote(key.text))
                else:
                    raise ConditionError(
                        f"Only numeric indices or string literals are allowed in brackets (position {key.pos})",
                        expression=self.expression,
                    )
                self._expect("]")
            else:
                return node

    def _primary(self):
        tok = self._next()
        if tok.kind == "NUMBER":
            return ("lit", float(tok.text) if "." in tok.text else int(tok.text))
        if tok.kind == "STRING":
            return ("lit", _unquote(tok.text))
        if tok.kind == "IDENT":
            if tok.text in _LITERALS:
                return ("lit", _LITERALS[tok.text])
            if tok.text == "undefined":
                return ("lit", UNDEFINED)
            return ("var", tok.text)
        if tok.text == "(":
            node = self._or()
            self._expect(")")
            return node
        raise ConditionError(f"Unexpected token {tok.text!r} at position {tok.pos}", expression=self.expression)


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", lambda m: {"n": "\n", "t": "\t"}.get(m.group(1), m.group(1)), body)


def parse_expression(expression: str, bound: frozenset[str] = frozenset()):
    """Validate and parse *expression* into an evaluation tree."""
    tokens = validate_expression(expression, bound)
    return _Parser(tokens, expression).parse()


# ── Interpreter ───────────────────────────────────────────────────────────────


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def to_boolean(v: Any) -> bool:
    """JavaScript truthiness: empty lists and dicts are truthy."""
    if v is None or v is UNDEFINED or v is False:
        return False
    if v is True:
        return True
    if _is_number(v):
        return v != 0 and not math.isnan(v)
    if isinstance(v, str):
        return v != ""
    return True


def _to_number(v: Any) -> float:
    if isinstance(v, bool):
        return 1.0 if v else 0.0
    if _is_number(v):
        return float(v)
    if v is None:
        return 0.0
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return 0.0
        try:
            return float(s)
        except ValueError:
            return math.nan
    return math.nan


def _to_string(v: Any) -> str:
    if v is None:
        return "null"
    if v is UNDEFINED:
        return "undefined"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    if isinstance(v, list):
        return ",".join("" if item is None or item is UNDEFINED else _to_string(item) for item in v)
    if isinstance(v, dict):
        return "[object Object]"
    return str(v)


def _strict_equals(a: Any, b: Any) -> bool:
    if _is_number(a) and _is_number(b):
        return a == b
    if a is None or b is None or a is UNDEFINED or b is UNDEFINED:
        return a is b
    if type(a) is not type(b):
        return False
    return a == b


def _loose_equals(a: Any, b: Any) -> bool:
    nullish_a = a is None or a is UNDEFINED
    nullish_b = b is None or b is UNDEFINED
    if nullish_a or nullish_b:
        return nullish_a and nullish_b
    if isinstance(a, bool) or isinstance(b, bool):
        if isinstance(a, bool) and isinstance(b, bool):
            return a == b
        return _to_number(a) == _to_number(b)
    if _is_number(a) and isinstance(b, str) or isinstance(a, str) and _is_number(b):
        return _to_number(a) == _to_number(b)
    return _strict_equals(a, b)


def _compare(op: str, a: Any, b: Any) -> bool:
    if op == "===":
        return _strict_equals(a, b)
    if op == "!==":
        return not _strict_equals(a, b)
    if op == "==":
        return _loose_equals(a, b)
    if op == "!=":
        return not _loose_equals(a, b)

    # Relational operators against null/undefined never hold.
    if a is None or b is None or a is UNDEFINED or b is UNDEFINED:
        return False
    if isinstance(a, str) and isinstance(b, str):
        x, y = a, b
    else:
        x, y = _to_number(a), _to_number(b)
        if math.isnan(x) or math.isnan(y):
            return False
    if op == "<":
        return x < y
    if op == "<=":
        return x <= y
    if op == ">":
        return x > y
    return x >= y


def _property(target: Any, name: str) -> Any:
    if name == "length" and isinstance(target, (str, list)):
        return len(target)
    if isinstance(target, dict):
        return target.get(name, UNDEFINED)
    if target is None or target is UNDEFINED:
        raise ConditionError(f"Cannot read property {name!r} of {_to_string(target)}")
    return UNDEFINED


def _index(target: Any, key: Any) -> Any:
    if isinstance(key, int) and isinstance(target, (list, str)):
        return target[key] if 0 <= key < len(target) else UNDEFINED
    if isinstance(target, dict):
        return target.get(str(key), UNDEFINED)
    if target is None or target is UNDEFINED:
        raise ConditionError(f"Cannot read index {key!r} of {_to_string(target)}")
    return UNDEFINED


def _call(target: Any, method: str, args: list) -> Any:
    arg = args[0] if args else UNDEFINED
    if method == "toString":
        if target is None or target is UNDEFINED:
            raise ConditionError("Cannot call toString on null")
        return _to_string(target)
    if method == "includes":
        if isinstance(target, str):
            return _to_string(arg) in target
        if isinstance(target, list):
            return any(_strict_equals(item, arg) for item in target)
    elif isinstance(target, str):
        if method == "startsWith":
            return target.startswith(_to_string(arg))
        if method == "endsWith":
            return target.endswith(_to_string(arg))
        if method == "toLowerCase":
            return target.lower()
        if method == "toUpperCase":
            return target.upper()
        if method == "trim":
            return target.strip()
    raise ConditionError(f"{method} is not a function on {type(target).__name__}")


def _eval(node, context: Mapping[str, Any]) -> Any:
    kind = node[0]
    if kind == "lit":
        return node[1]
    if kind == "var":
        if node[1] not in context:
            raise ConditionError(f"Unbound variable {node[1]!r}")
        return context[node[1]]
    if kind == "or":
        left = _eval(node[1], context)
        return left if to_boolean(left) else _eval(node[2], context)
    if kind == "and":
        left = _eval(node[1], context)
        return _eval(node[2], context) if to_boolean(left) else left
    if kind == "not":
        return not to_boolean(_eval(node[1], context))
    if kind == "neg":
        return -_to_number(_eval(node[1], context))
    if kind == "cmp":
        return _compare(node[1], _eval(node[2], context), _eval(node[3], context))
    if kind == "prop":
        return _property(_eval(node[1], context), node[2])
    if kind == "index":
        return _index(_eval(node[1], context), node[2])
    if kind == "call":
        target = _eval(node[1], context)
        args = [_eval(a, context) for a in node[3]]
        return _call(target, node[2], args)
    raise ConditionError(f"Unknown expression node {kind!r}")


# ── Public API ────────────────────────────────────────────────────────────────


def check_condition(expression: Any, outputs: Mapping[str, NodeOutput]) -> ConditionOutcome:
    """Evaluate *expression* and report why it was rejected, if it was.

    ``value`` is always a bool; ``error`` is set when the expression was
    rejected or failed to evaluate (``value`` is then False).
    """
    if isinstance(expression, bool):
        return ConditionOutcome(expression)
    if expression is None:
        return ConditionOutcome(False)
    if not isinstance(expression, str):
        return ConditionOutcome(to_boolean(expression))

    try:
        pre_validate_expression(expression)
        substituted, context = bind_references(expression, outputs)
        tree = parse_expression(substituted, frozenset(context))
        return ConditionOutcome(to_boolean(_eval(tree, context)))
    except ConditionError as exc:
        logger.warning(f"[Condition] Rejected {expression!r}: {exc}")
        return ConditionOutcome(False, str(exc))
    except Exception as exc:
        logger.warning(f"[Condition] Failed to evaluate {expression!r}: {exc}")
        return ConditionOutcome(False, f"Evaluation failed: {exc}")


def evaluate_condition(expression: Any, outputs: Mapping[str, NodeOutput]) -> bool:
    """Evaluate a condition against the Outputs Map. Total: never raises."""
    return check_condition(expression, outputs).value
