import hashlib
import json


def payload_hash(payload: dict) -> str:
    s = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()


def price_cache_key(payload: dict, profile: str, enable_vat: bool) -> str:
    # Profile and VAT flag are part of the key so a config change never serves stale prices
    scoped = {"input": payload, "profile": profile, "vat": enable_vat}
    return f"price:{payload_hash(scoped)}"
