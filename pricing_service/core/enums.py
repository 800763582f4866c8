from enum import Enum


class PricingProfile(str, Enum):
    STANDARD = "standard"
    COMPETITIVE = "competitive"

    def __str__(self):
        return self.value


class InsuranceLevel(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"

    def __str__(self):
        return self.value


class VehicleType(str, Enum):
    SMALL_VAN = "small_van"
    MEDIUM_VAN = "medium_van"
    LWB_VAN = "lwb_van"
    LUTON_VAN = "luton_van"
    LUTON_TAIL_LIFT = "luton_tail_lift"

    def __str__(self):
        return self.value


class ExtraService(str, Enum):
    PACKAGING = "packaging"
    ASSEMBLY = "assembly"
    DISASSEMBLY = "disassembly"
    CLEANING = "cleaning"

    def __str__(self):
        return self.value


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    REPRICE = "reprice"

    def __str__(self):
        return self.value
