from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
import math
import random
from typing import List, Literal, Optional

DateFormat = Literal["br", "iso"]
ValueFormat = Literal["br", "plain"]

_FIRST_NAMES = (
    "Ana", "Bruno", "Carla", "Diego", "Elisa", "Fabio", "Gabriela", "Heitor",
    "Isabela", "Joao", "Larissa", "Marcos", "Natalia", "Otavio", "Paula", "Rafael",
)
_LAST_NAMES = (
    "Silva", "Souza", "Oliveira", "Santos", "Lima", "Pereira", "Costa", "Almeida",
)


@dataclass(frozen=True)
class SalesScenario:
    """Configuration for synthetic sales rows.

    Attributes
    ----------
    mean_orders: Average number of orders per customer over the window.
    mean_order_value: Average order amount.
    value_variability: Coefficient in (0, 1] controlling amount variance.
    n_salespeople: Size of the sales team customers are assigned to.
    invalid_row_rate: Share of extra rows with a broken date or missing id.
    """

    mean_orders: float = 3.0
    mean_order_value: float = 250.0
    value_variability: float = 0.6
    n_salespeople: int = 4
    invalid_row_rate: float = 0.0


def _format_date(d: date, date_format: DateFormat) -> str:
    if date_format == "br":
        return d.strftime("%d/%m/%Y")
    return d.isoformat()


def _format_value(amount: float, value_format: ValueFormat) -> str:
    if value_format == "br":
        # 1234.5 -> "R$ 1.234,50"
        us = f"{amount:,.2f}"
        return "R$ " + us.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{amount:.2f}"


def _order_count(rng: random.Random, mean_orders: float) -> int:
    # Geometric draw: many one-time buyers, a long tail of frequent ones
    p = 1.0 / max(mean_orders, 1.0)
    if p >= 1.0:
        return 1
    return 1 + int(math.log(1.0 - rng.random()) / math.log(1.0 - p))


def _sample_amount(rng: random.Random, mean: float, variability: float) -> float:
    sigma = min(max(variability, 0.01), 1.0)
    mu = math.log(max(mean, 0.01)) - 0.5 * sigma * sigma
    return round(max(math.exp(rng.normalvariate(mu, sigma)), 0.01), 2)


def generate_sales_rows(
    n_customers: int,
    start: date,
    end: date,
    *,
    seed: Optional[int] = None,
    scenario: Optional[SalesScenario] = None,
    date_format: DateFormat = "br",
    value_format: ValueFormat = "br",
) -> List[dict[str, str]]:
    """Generate raw sales rows for ``n_customers`` between ``start`` and ``end``.

    Rows use the column names ``Codigo``, ``Nome``, ``Vendedor``,
    ``Data Emissao`` and ``Valor Bruto``, which the header auto-detection
    recognises. With ``invalid_row_rate > 0`` the output also contains rows
    with unparseable dates or blank ids, which the aggregator must drop.
    """
    if n_customers <= 0:
        return []
    if start > end:
        raise ValueError("start date must be <= end date")

    scenario = scenario or SalesScenario()
    rng = random.Random(seed)
    total_days = (end - start).days + 1
    salespeople = [f"Rep {i + 1}" for i in range(max(1, scenario.n_salespeople))]

    rows: List[dict[str, str]] = []
    for i in range(n_customers):
        customer_id = f"{1000 + i}"
        name = f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}"
        salesperson = rng.choice(salespeople)
        for _ in range(_order_count(rng, scenario.mean_orders)):
            order_date = start + timedelta(days=rng.randrange(total_days))
            amount = _sample_amount(
                rng, scenario.mean_order_value, scenario.value_variability
            )
            rows.append(
                {
                    "Codigo": customer_id,
                    "Nome": name,
                    "Vendedor": salesperson,
                    "Data Emissao": _format_date(order_date, date_format),
                    "Valor Bruto": _format_value(amount, value_format),
                }
            )

    n_invalid = int(len(rows) * max(0.0, scenario.invalid_row_rate))
    for j in range(n_invalid):
        broken = dict(rng.choice(rows))
        if j % 2 == 0:
            broken["Data Emissao"] = "sem data"
        else:
            broken["Codigo"] = ""
        rows.append(broken)

    rng.shuffle(rows)
    return rows
