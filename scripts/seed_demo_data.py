"""
Seed script: demo users and the ten-task demo dependency graph
Run after `alembic upgrade head` (or with DB_AUTO_CREATE=true)
"""
import asyncio
import sys
import os
from datetime import date, timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from taskboard.database import Database, auto_create_tables_enabled
from taskboard.database.repositories import TaskRepository, UserRepository
from taskboard.graph import DependencyGraphEngine

DEMO_USERS = [
    ("John Manager", "manager@softxpert.com", "manager"),
    ("Sarah Admin", "admin@softxpert.com", "manager"),
    ("Alice Developer", "alice@softxpert.com", "user"),
    ("Bob Designer", "bob@softxpert.com", "user"),
    ("Charlie Tester", "charlie@softxpert.com", "user"),
    ("Diana DevOps", "diana@softxpert.com", "user"),
]

# (title, description, status, due in days, index into the regular users)
DEMO_TASKS = [
    ("Setup Development Environment",
     "Install and configure all necessary development tools and dependencies",
     "completed", -10, 0),
    ("Design Database Schema",
     "Create ERD and design the database structure for the application",
     "completed", -8, 1),
    ("Implement User Authentication",
     "Develop JWT-based authentication system with role-based access control",
     "in_progress", 3, 0),
    ("Create Task Management API",
     "Develop RESTful API endpoints for task CRUD operations",
     "pending", 7, 0),
    ("Design UI/UX Mockups",
     "Create wireframes and mockups for the task management interface",
     "in_progress", 5, 1),
    ("Implement Frontend Components",
     "Develop React components for task management interface",
     "pending", 10, 1),
    ("Write Unit Tests",
     "Create comprehensive unit tests for all API endpoints",
     "pending", 12, 2),
    ("Setup CI/CD Pipeline",
     "Configure automated testing and deployment pipeline",
     "pending", 15, 3),
    ("Performance Testing",
     "Conduct load testing and performance optimization",
     "pending", 18, 2),
    ("Documentation",
     "Write comprehensive API documentation and user guides",
     "pending", 20, 0),
]

# task number -> task numbers it depends on (1-based, DEMO_TASKS order)
DEMO_DEPENDENCIES = {
    3: [1, 2],
    4: [3],
    6: [4, 5],
    7: [4],
    8: [7],
    9: [6, 7],
    10: [9],
}


async def seed_users(db: Database):
    """Create the demo users, skipping emails that already exist"""
    async with db.session() as session:
        users = UserRepository(session)
        created = 0
        for name, email, role in DEMO_USERS:
            if await users.get_by_email(email):
                print(f"[Seed] User exists, skipping: {email}")
                continue
            await users.create(name=name, email=email, role=role)
            created += 1
        print(f"[Seed] Created {created} users")


async def seed_tasks(db: Database):
    """Create the demo tasks and their dependency edges"""
    async with db.graph_transaction() as session:
        users = UserRepository(session)
        tasks = TaskRepository(session)

        if await tasks.count() > 0:
            print("[Seed] Tasks already present, skipping task seed")
            return

        manager = (await users.get_by_role("manager"))[0]
        regular = await users.get_by_role("user")
        today = date.today()

        task_ids = {}
        for number, (title, description, status, due_in, assignee) in enumerate(DEMO_TASKS, start=1):
            task = await tasks.create(
                title=title,
                description=description,
                status=status,
                due_date=today + timedelta(days=due_in),
                assigned_to=regular[assignee].id,
                created_by=manager.id,
            )
            task_ids[number] = task.id
        print(f"[Seed] Created {len(task_ids)} tasks")

        engine = DependencyGraphEngine(session, performed_by="seed")
        edge_count = 0
        for number, depends_on in DEMO_DEPENDENCIES.items():
            added = await engine.add_edges(task_ids[number], [task_ids[dep] for dep in depends_on])
            edge_count += len(added)
        print(f"[Seed] Created {edge_count} dependency edges")


async def seed():
    """Main seed function"""
    print("=" * 60)
    print("Seeding demo data")
    print("=" * 60)

    db = Database()
    await db.connect()
    try:
        if auto_create_tables_enabled():
            await db.create_tables()
        await seed_users(db)
        await seed_tasks(db)
    finally:
        await db.disconnect()

    print("\n✅ Seed complete")


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(seed())
