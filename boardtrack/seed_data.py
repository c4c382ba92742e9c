# boardtrack/seed_data.py
from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlmodel import Session, select

from .database import engine
from .models.board import Board, ServiceRecord
from .models.enums import BoardStatus, Priority, ServiceRecordStatus, WarrantyStatus
from .models.master import Mill, ServicePartner
from .services.event_logger import log_event
from .utils.helpers import utcnow


MILL_1 = "Mill 1 - Production Unit A"
MILL_2 = "Mill 2 - Production Unit B"
MILL_3 = "Mill 3 - Production Unit C"
MILL_4 = "Mill 4 - Quality Control"


def seed_master_data(bind=None, now: Optional[datetime] = None) -> bool:
    """
    Seeds mills, service partners and a demo board fleet.
    Skips seeding if the Mill table is non-empty. Returns True when seeded.
    """
    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    with Session(bind or engine) as session:
        # Skip if already seeded
        if session.exec(select(Mill)).first():
            return False

        # === Mills ===
        mills = [
            {"name": MILL_1, "location": "Industrial Area, Sector 1", "contact_person": "Rajesh Kumar", "phone": "+91-9876543210"},
            {"name": MILL_2, "location": "Industrial Area, Sector 2", "contact_person": "Suresh Patel", "phone": "+91-9876543211"},
            {"name": MILL_3, "location": "Industrial Area, Sector 3", "contact_person": "Amit Singh", "phone": "+91-9876543212"},
            {"name": MILL_4, "location": "Industrial Area, Sector 4", "contact_person": "Priya Sharma", "phone": "+91-9876543213"},
        ]
        session.add_all([Mill(**m) for m in mills])

        # === Service Partners ===
        partners = [
            {"name": "Super Electronics", "contact_person": "Vikram Mehta", "phone": "+91-9876543220", "email": "service@superelectronics.com", "address": "Electronics Hub, Phase 1, Gurgaon", "rating": 4.5, "avg_repair_time": 5},
            {"name": "Sheltronics", "contact_person": "Ravi Gupta", "phone": "+91-9876543221", "email": "support@sheltronics.com", "address": "Tech Park, Sector 18, Noida", "rating": 4.2, "avg_repair_time": 6},
            {"name": "TechFix Solutions", "contact_person": "Anita Verma", "phone": "+91-9876543222", "email": "repairs@techfixsolutions.com", "address": "Industrial Complex, Faridabad", "rating": 4.0, "avg_repair_time": 7},
            {"name": "ElectroServ India", "contact_person": "Manoj Agarwal", "phone": "+91-9876543223", "email": "service@electroserv.in", "address": "Electronic City, Bangalore", "rating": 4.3, "avg_repair_time": 5},
        ]
        session.add_all([ServicePartner(**p) for p in partners])

        # === Boards ===
        # (board_id, status, location, mill, warranty, expiry, purchase, substitute)
        boards = [
            ("SMW-B-001", BoardStatus.IN_USE, MILL_1, MILL_1, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=1), today - relativedelta(years=1, months=3), None),
            ("SMW-B-002", BoardStatus.SENT_FOR_SERVICE, "Super Electronics", MILL_2, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=1, months=2), today - relativedelta(years=1, months=2), "SMW-S-001"),
            ("SMW-B-003", BoardStatus.IN_REPAIR, "Sheltronics", MILL_3, WarrantyStatus.UNDER_REPLACEMENT_WARRANTY,
             today + relativedelta(years=2), today - relativedelta(years=1, months=1), "SMW-S-002"),
            ("SMW-B-004", BoardStatus.REPAIRED, "TechFix Solutions", MILL_1, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=1, months=6), today - relativedelta(years=1), "SMW-S-003"),
            ("SMW-B-005", BoardStatus.IN_USE, MILL_4, MILL_4, WarrantyStatus.OUT_OF_WARRANTY,
             today - relativedelta(years=1), today - relativedelta(years=3), None),
            ("SMW-S-001", BoardStatus.IN_USE, MILL_2, MILL_2, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=1, months=8), today - relativedelta(months=10), None),
            ("SMW-S-002", BoardStatus.IN_USE, MILL_3, MILL_3, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=1, months=9), today - relativedelta(months=9), None),
            ("SMW-S-003", BoardStatus.IN_USE, MILL_1, MILL_1, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=1, months=10), today - relativedelta(months=8), None),
            ("SMW-S-004", BoardStatus.IN_USE, MILL_4, MILL_4, WarrantyStatus.UNDER_SERVICE_WARRANTY,
             today + relativedelta(years=2), today - relativedelta(months=2), None),
        ]
        for i, (board_id, status, location, mill, warranty, expiry, purchase, sub) in enumerate(boards):
            touched = now - timedelta(days=i)
            board = Board(
                board_id=board_id,
                current_status=status,
                current_location=location,
                mill_assigned=mill,
                warranty_status=warranty,
                warranty_expiry=expiry,
                purchase_date=purchase,
                substitute_board=sub,
                created_at=touched,
                updated_at=touched,
            )
            if location != mill:
                board.service_history.append(
                    ServiceRecord(
                        service_date=touched,
                        issue_reported="Intermittent fault reported by mill",
                        service_partner=location,
                        status=ServiceRecordStatus.IN_PROGRESS,
                        priority=Priority.MEDIUM,
                        substitute_board=sub,
                    )
                )
            session.add(board)

        log_event(session, "SEED", "Demo mills, service partners and boards loaded",
                  {"mills": len(mills), "partners": len(partners), "boards": len(boards)})
        session.commit()
    return True
