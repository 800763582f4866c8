from datetime import date, datetime, time
from decimal import Decimal

from pricing_service.services.rates import DEFAULT_DEMAND_TABLE, DemandTable
from pricing_service.utils.money import SIX_DEC, ZERO, quantize

SECONDS_PER_DAY = Decimal("86400")
NEUTRAL = Decimal("1.0")


def day_of_week_factor(preferred_date: date, table: DemandTable = DEFAULT_DEMAND_TABLE) -> Decimal:
    return table.day_of_week.get(preferred_date.weekday(), NEUTRAL)


def seasonal_factor(preferred_date: date, table: DemandTable = DEFAULT_DEMAND_TABLE) -> Decimal:
    return table.month.get(preferred_date.month, NEUTRAL)


def lead_time_days(preferred_date: date, requested_at) -> Decimal:
    """Days from the request to the start of the job day, never negative."""
    if isinstance(requested_at, datetime):
        job_start = datetime.combine(preferred_date, time.min, tzinfo=requested_at.tzinfo)
        seconds = Decimal(str((job_start - requested_at).total_seconds()))
        days = seconds / SECONDS_PER_DAY
    else:
        days = Decimal((preferred_date - requested_at).days)
    return max(days, ZERO)


def lead_time_factor(days: Decimal, table: DemandTable = DEFAULT_DEMAND_TABLE) -> Decimal:
    for days_below, factor in table.lead_time:
        if days < days_below:
            return factor
    return table.early_booking_factor


def calculate_demand_multiplier(
    preferred_date: date,
    requested_at,
    table: DemandTable = DEFAULT_DEMAND_TABLE,
) -> Decimal:
    """Day-of-week x season x lead-time, floored at the table minimum."""
    multiplier = (
        day_of_week_factor(preferred_date, table)
        * seasonal_factor(preferred_date, table)
        * lead_time_factor(lead_time_days(preferred_date, requested_at), table)
    )
    return quantize(max(multiplier, table.minimum_multiplier), SIX_DEC)
