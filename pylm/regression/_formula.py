"""
Minimal model formula parsing.

Supports the additive subset of R's formula language used in the
practicals:

    "height ~ weight"
    "longevity ~ thorax + type"
    "y ~ x - 1"          (no intercept)
    "y ~ 0 + x"          (no intercept)

Interactions, transformations and nested terms are not supported.
"""

from dataclasses import dataclass
import re

from pylm.core.exceptions import ValidationError

_NAME = re.compile(r'^[A-Za-z_.][A-Za-z0-9_.]*$')


@dataclass(frozen=True)
class Formula:
    """Parsed additive formula."""
    response: str
    predictors: tuple[str, ...]
    intercept: bool

    def __str__(self) -> str:
        rhs = ' + '.join(self.predictors) or '1'
        if not self.intercept:
            rhs += ' - 1'
        return f"{self.response} ~ {rhs}"


def parse_formula(formula: str) -> Formula:
    """
    Parse "response ~ a + b" into a Formula.

    Raises:
        ValidationError: On malformed formulas or repeated terms
    """
    if formula.count('~') != 1:
        raise ValidationError(
            f"formula: expected exactly one '~', got {formula!r}"
        )
    lhs, rhs = (part.strip() for part in formula.split('~'))
    if not _NAME.match(lhs):
        raise ValidationError(f"formula: invalid response {lhs!r}")

    # Tokenise the right-hand side into signed terms
    tokens = re.findall(r'[+-]|[^+\-\s]+', rhs)
    if not tokens:
        raise ValidationError(f"formula: empty right-hand side in {formula!r}")

    intercept = True
    predictors: list[str] = []
    sign = '+'
    expect_term = True
    for tok in tokens:
        if tok in ('+', '-'):
            if expect_term and predictors:
                raise ValidationError(f"formula: dangling operator in {formula!r}")
            sign = tok
            expect_term = True
            continue
        if not expect_term:
            raise ValidationError(f"formula: missing operator before {tok!r}")
        expect_term = False
        if tok in ('0', '1'):
            # "- 1" and "+ 0" both drop the intercept
            intercept = (tok == '1') == (sign == '+')
        elif sign == '-':
            raise ValidationError(
                f"formula: only the intercept can be removed, got '- {tok}'"
            )
        elif not _NAME.match(tok):
            raise ValidationError(f"formula: invalid term {tok!r}")
        elif tok in predictors or tok == lhs:
            raise ValidationError(f"formula: term {tok!r} appears twice")
        else:
            predictors.append(tok)
        sign = '+'

    if expect_term:
        raise ValidationError(f"formula: trailing operator in {formula!r}")

    return Formula(response=lhs, predictors=tuple(predictors), intercept=intercept)
