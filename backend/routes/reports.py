# routes/reports.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from database import get_db
from models.users import Role, User
from schemas.reports import SellerSalesReport, UserPurchaseReport
from utils.audit import client_ip, write_log
from utils.pdf import generate_report_pdf, get_report_pdf_path
from utils.report_builder import build_seller_sales_report, build_user_purchase_report, current_month
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/reports", tags=["Reports"])


def _check_report_access(owner_id: int, user: User) -> None:
    # Own report, or any report for admins
    if user.role != Role.ADMIN and user.id != owner_id:
        raise HTTPException(status_code=403, detail="Not authorized to access this report")


def _pdf_response(report, kind: str, owner_id: int, month: str) -> FileResponse:
    out_path = get_report_pdf_path(kind, owner_id, month)
    # Always re-rendered: statuses and returns change after the fact
    generate_report_pdf(report, out_path)
    return FileResponse(path=str(out_path), media_type="application/pdf", filename=out_path.name)


# -----------------------------
# 1) Buyer purchases
# -----------------------------
@router.get("/user/{user_id}/purchases", response_model=UserPurchaseReport)
def user_purchase_report(
    user_id: int,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_report_access(user_id, current_user)
    return build_user_purchase_report(db, user_id, month or current_month())


@router.get("/user/{user_id}/purchases/pdf")
def user_purchase_report_pdf(
    user_id: int,
    request: Request,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_report_access(user_id, current_user)
    month = month or current_month()
    report = build_user_purchase_report(db, user_id, month)

    write_log(db, user_id=current_user.id, action="REPORT_PDF_DOWNLOAD", resource="reports",
              ip=client_ip(request), meta={"kind": "purchases", "user_id": user_id, "month": month})
    return _pdf_response(report, "purchases", user_id, month)


# -----------------------------
# 2) Seller sales
# -----------------------------
@router.get("/seller/{seller_id}/sales", response_model=SellerSalesReport)
def seller_sales_report(
    seller_id: int,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_report_access(seller_id, current_user)
    return build_seller_sales_report(db, seller_id, month or current_month())


@router.get("/seller/{seller_id}/sales/pdf")
def seller_sales_report_pdf(
    seller_id: int,
    request: Request,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_report_access(seller_id, current_user)
    month = month or current_month()
    report = build_seller_sales_report(db, seller_id, month)

    write_log(db, user_id=current_user.id, action="REPORT_PDF_DOWNLOAD", resource="reports",
              ip=client_ip(request), meta={"kind": "sales", "seller_id": seller_id, "month": month})
    return _pdf_response(report, "sales", seller_id, month)
