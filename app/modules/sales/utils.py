"""
Cálculo de líneas y totales de documentos (cotizaciones, órdenes de venta,
órdenes de compra)

    total de línea = cantidad × precio unitario
    sub_total      = Σ totales de línea
    gst_total      = Σ total de línea × tasa / 100
    total          = sub_total + gst_total, redondeado a la rupia
"""
from decimal import Decimal
from typing import Iterable, List, Tuple, Type

from app.common.utils import money, round_rupee, to_decimal


def line_total(quantity, unit_price) -> Decimal:
    return money(to_decimal(quantity) * to_decimal(unit_price))


def compute_totals(items: Iterable) -> Tuple[Decimal, Decimal, Decimal]:
    """Retorna (sub_total, gst_total, total) para objetos con quantity/unit_price/tax_rate."""
    sub_total = Decimal("0")
    gst_total = Decimal("0")
    for item in items:
        amount = to_decimal(item.quantity) * to_decimal(item.unit_price)
        sub_total += amount
        gst_total += amount * to_decimal(item.tax_rate) / Decimal("100")
    return money(sub_total), money(gst_total), round_rupee(sub_total + gst_total)


def build_line_items(model: Type, items_data: Iterable, **extra) -> List:
    """Instanciar líneas ORM desde schemas de entrada, con posición y total."""
    items = []
    for position, data in enumerate(items_data):
        items.append(model(
            position=position,
            product_id=data.product_id,
            product_name=data.product_name,
            description=data.description,
            hsn_code=data.hsn_code,
            quantity=data.quantity,
            unit=data.unit,
            unit_price=data.unit_price,
            tax_rate=data.tax_rate,
            total=line_total(data.quantity, data.unit_price),
            **extra
        ))
    return items


def copy_line_items(model: Type, source_items: Iterable, **extra) -> List:
    """Copiar líneas entre documentos (cotización -> orden de venta, revisiones)."""
    return [
        model(
            position=item.position,
            product_id=item.product_id,
            product_name=item.product_name,
            description=item.description,
            hsn_code=item.hsn_code,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
            tax_rate=item.tax_rate,
            total=item.total,
            **extra
        )
        for item in source_items
    ]


def apply_totals(document, items) -> None:
    document.sub_total, document.gst_total, document.total = compute_totals(items)
