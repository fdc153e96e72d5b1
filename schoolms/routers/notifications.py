from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.notification import EmailSendRequest
from ..services.audit_service import AuditService
from ..services.email_service import EmailService
from ..utils.deps import AdminUser, Context

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.post("/email")
async def send_email(body: EmailSendRequest, admin: AdminUser, ctx: Context,
                     db: AsyncSession = Depends(get_db)):
    results = await EmailService().send_bulk(body.recipients, body.subject, body.body, body.title)
    sent = sum(1 for r in results if r["sent"])
    await AuditService(db).log(
        "SEND_EMAIL", "NOTIFICATION", admin.id, ctx,
        status="SUCCESS" if sent == len(results) else "FAIL",
        details={"recipients": len(results), "sent": sent, "subject": body.subject},
    )
    return success_response(
        {"sent": sent, "failed": len(results) - sent, "results": results},
        f"{sent} of {len(results)} emails sent",
    )
