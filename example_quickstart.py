"""
onupdate Quick Start Example

Shows field-level on-update hooks on a small document.

Run with: python example_quickstart.py  (needs MongoDB on localhost)
"""

import asyncio
import logging

from onupdate import Document, OnUpdateMixin, connect, disconnect, on_field_update


class Author(OnUpdateMixin, Document):
    """An author whose profile changes trigger notifications."""

    name: str
    slug: str
    email: str

    class Settings:
        collection = "authors"
        on_update = [{"fields": ["name", "slug"], "hook": "reindex"}]

    def reindex(self, changed: list[str]) -> None:
        print(f"   reindex {self.slug!r} because {changed} changed")

    @on_field_update("email")
    async def confirm_email(self, changed: list[str]) -> None:
        print(f"   confirmation mail to {self.email}")


Author.on_update(fields=["slug"], hook=lambda changed: print(f"   redirect old slug ({changed})"))


async def main():
    logging.basicConfig(level=logging.INFO)
    await connect("mongodb://localhost:27017/onupdate_demo")
    try:
        author = await Author.create(name="Alice Johnson", slug="alice", email="alice@example.com")
        print("Created author (no hooks fire on insert)")

        print("\nRename only:")
        author.name = "Alice J."
        await author.save()

        print("\nChange email and slug in one save:")
        author.email = "alice@example.org"
        author.slug = "alice-j"
        await author.save()

        print("\nPartial update:")
        await author.update(email="alice@example.net")

        await author.delete()
    finally:
        await disconnect()


if __name__ == "__main__":
    asyncio.run(main())
