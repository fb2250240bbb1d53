"""Seed the configured storage backend with sample clients.

Usage:
    python scripts/seed_clients.py

Skips seeding when any client already exists. Most useful with
STORAGE_BACKEND=supabase; the memory backend starts empty in every process.
"""

from agency_companion.core.logging import get_logger
from agency_companion.db.storage import Storage, get_storage

logger = get_logger(__name__)

SAMPLE_CLIENTS = [
    {
        "name": "TechVision Inc.",
        "contact_name": "Jonathan Chen",
        "contact_title": "CEO",
        "email": "jonathan@techvision.example",
        "phone": "+1 (555) 123-4567",
        "industry": "Technology",
        "status": "Discovery",
        "website_url": "https://techvision.example",
        "project_name": "Website Redesign",
        "project_description": "Complete overhaul of corporate website",
        "project_status": "active",
        "project_value": 45000,
    },
    {
        "name": "Greenleaf Solutions",
        "contact_name": "Sarah Johnson",
        "contact_title": "Marketing Director",
        "email": "sarah@greenleaf.example",
        "phone": "+1 (555) 234-5678",
        "industry": "Sustainability",
        "status": "Planning",
        "website_url": "https://greenleaf.example",
        "project_name": "Sustainability Report Website",
        "project_description": "Interactive web presentation of annual sustainability report",
        "project_status": "active",
        "project_value": 30000,
    },
    {
        "name": "Horizon Media Group",
        "contact_name": "Marcus Taylor",
        "contact_title": "Creative Director",
        "email": "marcus@horizonmedia.example",
        "phone": "+1 (555) 345-6789",
        "industry": "Media",
        "status": "Design and Development",
        "website_url": "https://horizonmedia.example",
        "project_name": "Digital Content Platform",
        "project_description": "New content management system for media distribution",
        "project_status": "active",
        "project_value": 55000,
    },
    {
        "name": "BlueWave Analytics",
        "contact_name": "Priya Sharma",
        "contact_title": "CTO",
        "email": "priya@bluewave.example",
        "phone": "+1 (555) 456-7890",
        "industry": "Data Analytics",
        "status": "Post Launch Management",
        "website_url": "https://bluewave.example",
        "project_name": "Data Visualization Tool",
        "project_description": "Interactive data visualization tool",
        "project_status": "completed",
        "project_value": 40000,
    },
    {
        "name": "Summit Financial Partners",
        "contact_name": "Robert Williams",
        "contact_title": "COO",
        "email": "robert@summit.example",
        "phone": "+1 (555) 567-8901",
        "industry": "Finance",
        "status": "Discovery",
        "website_url": "https://summit.example",
        "project_name": "Investment Portal",
        "project_description": "Client investment portal with secure access",
        "project_status": "active",
        "project_value": 70000,
    },
]


def seed_clients(storage: Storage) -> int:
    """Insert the sample clients unless clients already exist. Returns rows inserted."""
    if storage.list_client_rows():
        logger.info("Storage already has clients, skipping seed")
        return 0

    for client in SAMPLE_CLIENTS:
        storage.create_client(dict(client))

    logger.info(f"Seeded {len(SAMPLE_CLIENTS)} clients")
    return len(SAMPLE_CLIENTS)


if __name__ == "__main__":
    inserted = seed_clients(get_storage())
    print(f"Inserted {inserted} clients")
