"""
Document total calculation.

Section totals are the sum of item totals per category. Cabinet is always
counted; the other sections only when the document includes them. Labour is a
percentage of each labour-bearing section, except the worktop which carries a
fixed installation charge (quantity x unit price). VAT is added on top of the
labour-inclusive amount.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

SECTIONS = ('cabinet', 'worktop', 'accessories', 'appliances', 'wardrobes', 'tvunit')
LABOUR_SECTIONS = ('cabinet', 'accessories', 'appliances', 'wardrobes', 'tvunit')

DEFAULT_LABOUR_PERCENTAGE = Decimal('30')
DEFAULT_VAT_PERCENTAGE = Decimal('16')
TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')


def to_decimal(value, default=ZERO):
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def money(value):
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def item_total(quantity, unit_price):
    return money(to_decimal(quantity) * to_decimal(unit_price))


def _item_value(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


@dataclass
class DocumentTotals:
    section_totals: dict = field(default_factory=dict)
    section_labour: dict = field(default_factory=dict)
    worktop_labour: Decimal = ZERO
    subtotal: Decimal = ZERO
    labour_total: Decimal = ZERO
    total_amount: Decimal = ZERO
    vat_amount: Decimal = ZERO
    grand_total: Decimal = ZERO

    def as_fields(self):
        """Model field values for a sales document"""
        fields = {f'{section}_total': self.section_totals.get(section, ZERO) for section in SECTIONS}
        fields.update({
            'labour_total': self.labour_total,
            'total_amount': self.total_amount,
            'vat_amount': self.vat_amount,
            'grand_total': self.grand_total,
        })
        return fields


def calculate_document_totals(items, include=None, labour_percentage=DEFAULT_LABOUR_PERCENTAGE,
                              section_labour_percentages=None, worktop_labor_qty=ZERO,
                              worktop_labor_unit_price=ZERO, vat_percentage=DEFAULT_VAT_PERCENTAGE):
    """
    Calculate section, labour, VAT and grand totals for a list of items.

    `items` may be model instances or dicts with category, quantity and
    unit_price (total_price is used when quantity/unit_price are missing).
    `include` maps section name to whether it counts; cabinet always counts.
    A section labour percentage of None falls back to `labour_percentage`.
    """
    include = include or {}
    section_labour_percentages = section_labour_percentages or {}
    general_labour = to_decimal(labour_percentage, DEFAULT_LABOUR_PERCENTAGE)

    raw_totals = {section: ZERO for section in SECTIONS}
    for item in items:
        category = _item_value(item, 'category') or 'cabinet'
        if category not in raw_totals:
            continue
        quantity = _item_value(item, 'quantity')
        unit_price = _item_value(item, 'unit_price')
        if quantity is not None and unit_price is not None:
            raw_totals[category] += item_total(quantity, unit_price)
        else:
            raw_totals[category] += money(_item_value(item, 'total_price'))

    section_totals = {}
    for section in SECTIONS:
        counted = section == 'cabinet' or include.get(section, section == 'worktop')
        section_totals[section] = money(raw_totals[section]) if counted else ZERO.quantize(TWO_PLACES)

    section_labour = {}
    for section in LABOUR_SECTIONS:
        percentage = section_labour_percentages.get(section)
        percentage = general_labour if percentage is None else to_decimal(percentage, general_labour)
        section_labour[section] = money(section_totals[section] * percentage / HUNDRED)

    worktop_labour = ZERO
    if include.get('worktop', True):
        worktop_labour = money(to_decimal(worktop_labor_qty) * to_decimal(worktop_labor_unit_price))

    subtotal = money(sum(section_totals.values(), ZERO))
    labour_total = money(sum(section_labour.values(), ZERO) + worktop_labour)
    total_amount = money(subtotal + labour_total)
    vat_amount = money(total_amount * to_decimal(vat_percentage, DEFAULT_VAT_PERCENTAGE) / HUNDRED)
    grand_total = money(total_amount + vat_amount)

    return DocumentTotals(
        section_totals=section_totals,
        section_labour=section_labour,
        worktop_labour=worktop_labour,
        subtotal=subtotal,
        labour_total=labour_total,
        total_amount=total_amount,
        vat_amount=vat_amount,
        grand_total=grand_total,
    )
