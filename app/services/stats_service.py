"""Summary numbers for a filtered quotation view."""
from dataclasses import dataclass, asdict

from app.parsers import parse_money


@dataclass(frozen=True)
class QuotationStats:
    total_quotations: int = 0
    total_amount: float = 0.0
    invoiced_count: int = 0
    regret_count: int = 0
    open_count: int = 0
    pending_count: int = 0

    @property
    def other_count(self):
        counted = self.invoiced_count + self.regret_count + self.open_count + self.pending_count
        return self.total_quotations - counted

    def as_dict(self):
        data = asdict(self)
        data['other_count'] = self.other_count
        return data


def compute_stats(view):
    """Reduce the same view the table shows; statuses compare case-insensitively."""
    total_amount = 0.0
    counts = {'INVOICED': 0, 'REGRET': 0, 'OPEN': 0, 'PENDING': 0}
    size = 0
    for record in view:
        size += 1
        total_amount += parse_money(record.total_amount)
        status = (record.status or '').upper()
        if status in counts:
            counts[status] += 1
    return QuotationStats(
        total_quotations=size,
        total_amount=total_amount,
        invoiced_count=counts['INVOICED'],
        regret_count=counts['REGRET'],
        open_count=counts['OPEN'],
        pending_count=counts['PENDING'],
    )
