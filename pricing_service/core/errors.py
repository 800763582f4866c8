"""HTTP error helpers shared by the routers"""
from fastapi import HTTPException
from typing import Optional


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[str] = None) -> None:

    if not item:
        if resource_id:
            raise HTTPException(
                status_code=404,
                detail=f"{resource_name} with id {resource_id} not found"
            )
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")


def check_record_id(record, expected_id: str, resource_name: str = "Resource") -> None:
    """404 unless the record in the body is the one named in the path."""
    check_not_found(record if record is not None and record.id == expected_id else None, resource_name, expected_id)


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=400, detail=detail)
