"""Seed demo items for the local development user."""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List

from ..models.item import ItemCreate, ItemUpdate
from ..models.library import Concept
from .auth import LOCAL_USER_ID
from .database import init_database
from .item_store import ItemStore, get_item_store

logger = logging.getLogger(__name__)

DEMO_ITEMS = [
    {
        "url": "https://react.dev/learn/thinking-in-react",
        "title": "Thinking in React - React Documentation",
        "content": (
            "React can change how you think about the designs you look at and the apps you build. "
            "When you build a user interface with React, you will first break it apart into pieces "
            "called components. Then you describe the different visual states for each component "
            "and connect them together so that data flows through them."
        ),
        "summary": (
            "A guide to React's component-based architecture and how to think about building UIs "
            "the React way. Covers breaking interfaces into components and managing data flow."
        ),
        "tags": ["React", "Frontend", "Tutorial", "JavaScript"],
        "concepts": ["Components", "State Management", "Data Flow", "UI Design"],
        "intent": "tutorial",
        "domain": "react.dev",
        "favicon": "https://react.dev/favicon.ico",
        "image_url": "https://images.unsplash.com/photo-1633356122544-f134324a6cee?w=800",
        "reading_progress": 45,
    },
    {
        "url": "https://paulgraham.com/startupideas.html",
        "title": "How to Get Startup Ideas - Paul Graham",
        "content": (
            "The way to get startup ideas is not to try to think of startup ideas. It's to look for "
            "problems, preferably problems you have yourself. The best startup ideas tend to be "
            "something the founders want, that they can build, and that few others realize are "
            "worth doing."
        ),
        "summary": (
            "An essay on finding startup ideas by solving your own problems rather than "
            "brainstorming. Emphasizes building what you know and finding underserved markets."
        ),
        "tags": ["Startups", "Entrepreneurship", "Ideas", "Business"],
        "concepts": ["Startup Ideas", "Problem Solving", "Market Opportunity", "Founder-Market Fit"],
        "intent": "reference",
        "domain": "paulgraham.com",
        "favicon": "https://paulgraham.com/favicon.ico",
        "image_url": "https://images.unsplash.com/photo-1559136555-9303baea8ebd?w=800",
        "reading_progress": 100,
        "is_read": True,
    },
    {
        "url": "https://web.dev/performance-audits/",
        "title": "Web Performance Optimization Guide",
        "content": (
            "Performance matters because users expect fast, responsive pages. Core Web Vitals "
            "measure loading, interactivity and visual stability, and improving them raises "
            "engagement and conversion."
        ),
        "summary": (
            "A practical guide to optimizing web performance covering loading times, Core Web "
            "Vitals, and techniques for creating faster user experiences."
        ),
        "tags": ["Performance", "Web Development", "Optimization", "UX"],
        "concepts": ["Core Web Vitals", "Loading Time", "User Experience", "Conversion"],
        "intent": "read_later",
        "domain": "web.dev",
        "favicon": "https://web.dev/favicon.ico",
        "image_url": "https://images.unsplash.com/photo-1460925895917-afdab827c52f?w=800",
    },
    {
        "url": "https://dribbble.com/shots/trending",
        "title": "Trending Design Inspiration - Dribbble",
        "content": (
            "Discover the most popular design shots from the community: interfaces, illustration, "
            "branding and motion work with modern color palettes and interaction patterns."
        ),
        "summary": (
            "Trending design shots featuring modern UI patterns, color palettes, and interaction "
            "designs from designers worldwide."
        ),
        "tags": ["Design", "Inspiration", "UI/UX", "Visual Design"],
        "concepts": ["Visual Design", "UI Patterns", "Color Theory", "Typography"],
        "intent": "inspiration",
        "domain": "dribbble.com",
        "favicon": "https://dribbble.com/favicon.ico",
        "image_url": "https://images.unsplash.com/photo-1561070791-2526d30994b5?w=800",
    },
    {
        "url": "https://docs.anthropic.com/claude/docs",
        "title": "Claude API Documentation - Anthropic",
        "content": (
            "Claude is a family of large language models. This documentation covers the Messages "
            "API, prompt engineering techniques, tool use and guidance for building safe, "
            "reliable AI features."
        ),
        "summary": (
            "Documentation for integrating Claude into applications. Covers API endpoints, "
            "prompt engineering, and practices for building AI-powered features."
        ),
        "tags": ["AI", "API", "Documentation", "LLM"],
        "concepts": ["Large Language Models", "API Integration", "Prompt Engineering", "AI Safety"],
        "intent": "reference",
        "domain": "anthropic.com",
        "favicon": "https://www.anthropic.com/favicon.ico",
        "image_url": "https://images.unsplash.com/photo-1677442136019-21780ecad995?w=800",
        "reading_progress": 20,
    },
    {
        "url": "https://tailwindcss.com/docs/installation",
        "title": "Getting Started with Tailwind CSS",
        "content": (
            "Tailwind CSS works by scanning your templates for class names, generating the "
            "corresponding styles and writing them to a static CSS file. It is fast, flexible "
            "and has zero runtime."
        ),
        "summary": (
            "Installation guide and introduction to Tailwind CSS, covering setup, configuration, "
            "and the utility-first approach to styling web applications."
        ),
        "tags": ["CSS", "Tailwind", "Frontend", "Styling"],
        "concepts": ["Utility-First CSS", "Responsive Design", "Design Systems", "Component Styling"],
        "intent": "tutorial",
        "domain": "tailwindcss.com",
        "favicon": "https://tailwindcss.com/favicon.ico",
        "image_url": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=800",
        "reading_progress": 100,
        "is_read": True,
    },
]

# Index pairs into DEMO_ITEMS, written as symmetric edges
DEMO_EDGES = [
    (0, 5, "Both cover component-driven frontend development"),
    (1, 2, "Both focus on building products users value"),
    (4, 0, "Building AI features into React interfaces"),
    (4, 5, "Documentation for tools used in modern web apps"),
]

PROGRESS_FIELDS = ("reading_progress", "is_read")


async def seed_demo_items(store: ItemStore, user_id: str = LOCAL_USER_ID) -> int:
    """
    Create the demo items and their edges for ``user_id``.

    Skipped when the user already has items. Returns the number of items created.
    """
    if await store.get_items_by_user(user_id):
        logger.info(f"User {user_id} already has items; skipping demo seed")
        return 0

    created = []
    for entry in DEMO_ITEMS:
        fields = {k: v for k, v in entry.items() if k not in PROGRESS_FIELDS}
        item = await store.create_item(user_id, ItemCreate(**fields))
        progress = {k: entry[k] for k in PROGRESS_FIELDS if k in entry}
        if progress:
            item = await store.update_item(user_id, item.id, ItemUpdate(**progress)) or item
        created.append(item)

    for left, right, reason in DEMO_EDGES:
        await store.add_edge(user_id, created[left].id, created[right].id, reason)

    await seed_concepts(store, DEMO_ITEMS, [item.id for item in created])

    logger.info(f"Seeded {len(created)} demo items for user: {user_id}")
    return len(created)


async def seed_concepts(store: ItemStore, entries: List[dict], item_ids: List[str]) -> int:
    """Derive process-wide concepts from the demo items' concept labels."""
    by_name: Dict[str, Concept] = {}
    for entry, item_id in zip(entries, item_ids):
        names = entry.get("concepts", [])
        for name in names:
            concept = by_name.get(name)
            if concept is None:
                concept = by_name[name] = Concept(id=str(uuid.uuid4()), name=name)
            concept.item_ids.append(item_id)
            for other in names:
                if other != name and other not in concept.related_concepts:
                    concept.related_concepts.append(other)

    for concept in by_name.values():
        await store.save_concept(concept)
    return len(by_name)


async def init_and_seed(user_id: str = LOCAL_USER_ID) -> None:
    """
    Initialize the database schema and seed demo items.

    Called on application startup so a fresh instance always has content.
    """
    logger.info("Initializing database and seeding demo items...")

    db_path = init_database()
    logger.info(f"Database initialized at: {db_path}")

    created = await seed_demo_items(get_item_store(), user_id)
    logger.info(f"Initialization complete. Created {created} demo items.")


__all__ = ["DEMO_ITEMS", "DEMO_EDGES", "seed_demo_items", "seed_concepts", "init_and_seed"]
