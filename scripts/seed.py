"""
Seed script: areas, departments, municipal officials and a handful of demo
profiles (one per role) so the workflow can be exercised end to end.
Run from the project root: python -m scripts.seed
"""
import asyncio
import sys
import os
import uuid

# Ensure the project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from civicconnect.database import session_scope
from civicconnect.models.area import Area
from civicconnect.models.department import Department
from civicconnect.models.community import MunicipalOfficial
from civicconnect.models.profile import Profile

# ---------- Fixed UUIDs ----------

AREA_DOWNTOWN_ID = uuid.UUID("a0000000-0000-0000-0000-000000000001")
AREA_NORTH_ID = uuid.UUID("a0000000-0000-0000-0000-000000000002")
AREA_INDUSTRIAL_ID = uuid.UUID("a0000000-0000-0000-0000-000000000003")
AREA_EAST_ID = uuid.UUID("a0000000-0000-0000-0000-000000000004")
AREA_HISTORIC_ID = uuid.UUID("a0000000-0000-0000-0000-000000000005")

DEPT_PWD_ID = uuid.UUID("d0000000-0000-0000-0000-000000000001")
DEPT_WUD_ID = uuid.UUID("d0000000-0000-0000-0000-000000000002")
DEPT_PRD_ID = uuid.UUID("d0000000-0000-0000-0000-000000000003")
DEPT_ENV_ID = uuid.UUID("d0000000-0000-0000-0000-000000000004")
DEPT_PSD_ID = uuid.UUID("d0000000-0000-0000-0000-000000000005")
DEPT_UPD_ID = uuid.UUID("d0000000-0000-0000-0000-000000000006")

PROFILE_CITIZEN_ID = uuid.UUID("c0000000-0000-0000-0000-000000000001")
PROFILE_ADMIN_ID = uuid.UUID("c0000000-0000-0000-0000-000000000002")
PROFILE_AREA_ADMIN_ID = uuid.UUID("c0000000-0000-0000-0000-000000000003")
PROFILE_DEPT_ADMIN_ID = uuid.UUID("c0000000-0000-0000-0000-000000000004")
PROFILE_CONTRACTOR_A_ID = uuid.UUID("c0000000-0000-0000-0000-000000000005")
PROFILE_CONTRACTOR_B_ID = uuid.UUID("c0000000-0000-0000-0000-000000000006")


async def seed():
    async with session_scope() as db:
        result = await db.execute(select(Area).where(Area.code == "DD01"))
        if result.scalar_one_or_none():
            print("Seed data already exists. Skipping.")
            return

        # --- Areas ---
        db.add_all([
            Area(id=AREA_DOWNTOWN_ID, name="Downtown District", code="DD01",
                 description="Central business district with high commercial activity"),
            Area(id=AREA_NORTH_ID, name="Residential North", code="RN02",
                 description="Northern residential area with family neighborhoods"),
            Area(id=AREA_INDUSTRIAL_ID, name="Industrial Zone", code="IZ03",
                 description="Industrial and manufacturing zone"),
            Area(id=AREA_EAST_ID, name="Suburban East", code="SE04",
                 description="Eastern suburban area with mixed development"),
            Area(id=AREA_HISTORIC_ID, name="Historic Quarter", code="HQ05",
                 description="Historic downtown area with heritage buildings"),
        ])
        await db.flush()

        # --- Departments ---
        db.add_all([
            Department(id=DEPT_PWD_ID, name="Public Works Department", code="PWD",
                       category="infrastructure",
                       description="Responsible for roads, bridges, and infrastructure maintenance"),
            Department(id=DEPT_WUD_ID, name="Water & Utilities Department", code="WUD",
                       category="utilities",
                       description="Manages water supply, sewage, and utility services"),
            Department(id=DEPT_PRD_ID, name="Parks & Recreation Department", code="PRD",
                       category="parks",
                       description="Maintains parks, recreational facilities, and green spaces"),
            Department(id=DEPT_ENV_ID, name="Environmental Services", code="ENV",
                       category="environment",
                       description="Handles waste management and environmental protection"),
            Department(id=DEPT_PSD_ID, name="Public Safety Department", code="PSD",
                       category="safety",
                       description="Manages public safety and emergency services"),
            Department(id=DEPT_UPD_ID, name="Urban Planning Department", code="UPD",
                       category="administration",
                       description="City planning and development oversight"),
        ])
        await db.flush()

        # --- Municipal officials ---
        db.add_all([
            MunicipalOfficial(
                name="John Smith", title="City Manager", department="Administration",
                email="john.smith@city.gov", phone="+1-555-0101", whatsapp_number="+15550101",
                office_address="123 City Hall, Main St", office_hours="Mon-Fri 9AM-5PM",
                responsibilities=["City operations", "Budget management"],
                bio="Experienced city manager with 15+ years in municipal governance",
            ),
            MunicipalOfficial(
                name="Sarah Johnson", title="Public Works Director", department="Public Works",
                email="sarah.johnson@city.gov", phone="+1-555-0102", whatsapp_number="+15550102",
                office_address="456 Works Dept, Industrial Ave", office_hours="Mon-Fri 8AM-4PM",
                responsibilities=["Road maintenance", "Infrastructure"],
                bio="Civil engineer specializing in municipal infrastructure",
            ),
            MunicipalOfficial(
                name="Mike Chen", title="Parks Director", department="Parks & Recreation",
                email="mike.chen@city.gov", phone="+1-555-0103", whatsapp_number="+15550103",
                office_address="789 Parks Office, Green St", office_hours="Mon-Fri 9AM-5PM",
                responsibilities=["Park maintenance", "Recreation programs"],
                bio="Recreation specialist focused on community wellness",
            ),
        ])

        # --- Demo profiles (accounts themselves live with the identity provider) ---
        db.add_all([
            Profile(id=PROFILE_CITIZEN_ID, email="citizen@example.com",
                    user_type="user", full_name="Casey Citizen"),
            Profile(id=PROFILE_ADMIN_ID, email="admin@city.gov",
                    user_type="admin", full_name="City Admin"),
            Profile(id=PROFILE_AREA_ADMIN_ID, email="downtown@city.gov",
                    user_type="area_super_admin", full_name="Downtown Supervisor",
                    assigned_area_id=AREA_DOWNTOWN_ID),
            Profile(id=PROFILE_DEPT_ADMIN_ID, email="pwd@city.gov",
                    user_type="department_admin", full_name="Public Works Officer",
                    assigned_department_id=DEPT_PWD_ID),
            Profile(id=PROFILE_CONTRACTOR_A_ID, email="bids@roadworks.example.com",
                    user_type="tender", full_name="Roadworks Ltd",
                    contractor_license="LIC-1001", contractor_specializations=["roads"],
                    is_verified=True),
            Profile(id=PROFILE_CONTRACTOR_B_ID, email="bids@citybuild.example.com",
                    user_type="tender", full_name="CityBuild Co",
                    contractor_license="LIC-1002", contractor_specializations=["roads", "utilities"],
                    is_verified=True),
        ])

        await db.flush()
        print("Seed data inserted successfully!")
        print("  Areas: 5")
        print("  Departments: 6")
        print("  Municipal officials: 3")
        print("  Profiles: 6 (one per role, two contractors)")


if __name__ == "__main__":
    asyncio.run(seed())
