from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from django.template import Context, Template


def render_message(template_str: str, context: dict) -> str:
    """
    Renderiza um template de texto com placeholders no formato {{ var }}.

    Exemplo:
        template = "Olá {{ cliente }}, a etapa {{ etapa }} foi concluída"
        output = render_message(template, {"cliente": "Maria", "etapa": "Petição"})
    """
    return Template(template_str).render(Context(context))


def format_currency(amount: Decimal | float | int, symbol: str = "R$") -> str:
    """R$ 1.234,56"""
    amt = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    us_str = f"{amt:,.2f}"  # "1,234.56"
    integer_part, decimal_part = us_str.split(".")
    integer_brl = integer_part.replace(",", ".")
    return f"{symbol} {integer_brl},{decimal_part}"


def format_date(d: date | datetime) -> str:
    """DD/MM/AAAA"""
    if isinstance(d, datetime):
        d = d.date()
    return d.strftime("%d/%m/%Y")
