# File: backend/eduattend/services/seed_service.py
"""Database seeding service for demo data."""
from eduattend import db
from eduattend.models.profile import Profile

DEMO_DEPARTMENT = 'Computer Engineering'
DEMO_LEVEL = '300 Level'
DEMO_PASSWORD = 'password123'

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all() -> int:
        """Seed all demo data. Returns the number of profiles created."""
        created = SeedService.seed_hoc()
        created += SeedService.seed_students()
        db.session.commit()
        return created

    @staticmethod
    def seed_hoc() -> int:
        if Profile.query.filter_by(matric_number='2021/ENG/10001').first():
            return 0

        hoc = Profile(
            matric_number='2021/ENG/10001',
            name='Demo Class Rep',
            department=DEMO_DEPARTMENT,
            level=DEMO_LEVEL,
            is_hoc=True
        )
        hoc.set_password(DEMO_PASSWORD)
        db.session.add(hoc)
        return 1

    @staticmethod
    def seed_students(count: int = 10) -> int:
        created = 0
        for sequence in range(2, count + 2):
            matric_number = f'2021/ENG/10{sequence:03d}'
            if Profile.query.filter_by(matric_number=matric_number).first():
                continue

            student = Profile(
                matric_number=matric_number,
                name=f'Demo Student {sequence - 1}',
                department=DEMO_DEPARTMENT,
                level=DEMO_LEVEL,
                is_hoc=False
            )
            student.set_password(DEMO_PASSWORD)
            db.session.add(student)
            created += 1
        return created
