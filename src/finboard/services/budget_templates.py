"""Pre-configured budget templates splitting income across categories."""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from finboard.core.exceptions import NotFoundError, ValidationError


@dataclass(frozen=True)
class TemplateLine:
    """Either a fixed amount in cents or a percentage of what is left after fixed lines."""

    category_key: str
    fixed_cents: Optional[int] = None
    percentage: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if (self.fixed_cents is None) == (self.percentage is None):
            raise ValueError(f"Template line {self.category_key} needs exactly one of fixed_cents or percentage")


@dataclass(frozen=True)
class BudgetTemplate:
    key: str
    name: str
    description: str
    lines: tuple[TemplateLine, ...] = field(default_factory=tuple)


BUDGET_TEMPLATES: tuple[BudgetTemplate, ...] = (
    BudgetTemplate(
        key="barefoot-investor",
        name="Barefoot Investor Buckets",
        description="Fixed $1,200 groceries with percentage splits for everything else.",
        lines=(
            TemplateLine("groceries", fixed_cents=120000),
            TemplateLine("bills-fixed", percentage=Decimal("60")),
            TemplateLine("transport", percentage=Decimal("10")),
            TemplateLine("eating-out", percentage=Decimal("8")),
            TemplateLine("fun", percentage=Decimal("7")),
            TemplateLine("shopping", percentage=Decimal("5")),
            TemplateLine("health", percentage=Decimal("10")),
        ),
    ),
    BudgetTemplate(
        key="50-30-20",
        name="50/30/20 Rule",
        description="50% needs, 30% wants, 20% savings mapped onto categories.",
        lines=(
            TemplateLine("bills-fixed", percentage=Decimal("35")),
            TemplateLine("groceries", percentage=Decimal("15")),
            TemplateLine("transport", percentage=Decimal("10")),
            TemplateLine("eating-out", percentage=Decimal("10")),
            TemplateLine("shopping", percentage=Decimal("10")),
            TemplateLine("fun", percentage=Decimal("10")),
            TemplateLine("health", percentage=Decimal("5")),
        ),
    ),
    BudgetTemplate(
        key="fixed-rent",
        name="Fixed Rent and Groceries",
        description="Fixed rent ($2,129) and groceries ($1,200), with percentage splits for the rest.",
        lines=(
            TemplateLine("bills-fixed", fixed_cents=212900),
            TemplateLine("groceries", fixed_cents=120000),
            TemplateLine("eating-out", percentage=Decimal("8")),
            TemplateLine("transport", percentage=Decimal("6")),
            TemplateLine("fun", percentage=Decimal("8")),
            TemplateLine("shopping", percentage=Decimal("4")),
            TemplateLine("health", percentage=Decimal("8")),
        ),
    ),
)


def get_template(key: str) -> BudgetTemplate:
    for template in BUDGET_TEMPLATES:
        if template.key == key:
            return template
    raise NotFoundError("Budget template", key)


def apply_template(template: BudgetTemplate, income_cents: int) -> dict[str, int]:
    """
    Resolve a template into cents per category key.

    Fixed lines are taken off income first; percentage lines apply to what
    remains (never below zero), rounded half-up to the cent.
    """
    if income_cents < 0:
        raise ValidationError("Income cannot be negative", field="income_cents")

    fixed_total = sum(line.fixed_cents for line in template.lines if line.fixed_cents is not None)
    remaining = Decimal(max(0, income_cents - fixed_total))

    allocations: dict[str, int] = {}
    for line in template.lines:
        if line.fixed_cents is not None:
            allocations[line.category_key] = line.fixed_cents
        else:
            cents = (remaining * line.percentage / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            allocations[line.category_key] = int(cents)
    return allocations
