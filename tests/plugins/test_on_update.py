import pytest

from onupdate import (
    Document,
    DocumentNotFound,
    InvalidConfiguration,
    OnUpdateMixin,
    on_field_update,
    pre_save,
    pre_update,
)


class Item(OnUpdateMixin, Document):
    name: str
    slug: str = ""
    password: str = ""
    log: list = []

    def test(self, changed):
        self.log.append(("test", changed))

    def oven(self, changed):
        self.log.append(("oven", changed))

    def blerg(self, changed):
        self.log.append(("blerg", changed))


def hook_names(doc):
    return [hook.target for hook in doc.resolve_update_hooks()]


async def changed_item(model, **changes):
    item = await model.create(name="roxio", slug="burner", password="foo")
    for key, value in changes.items():
        setattr(item, key, value)
    return item


class TestRegistrationSurface:
    def test_classmethod_registration(self):
        class Account(Item):
            pass

        options = Account.on_update(fields=["name", "slug", "name"], hook="test")
        assert options.fields == ("name", "slug")
        assert Account.on_update_registration().tracked_fields == ("name", "slug")

    def test_classmethod_requires_fields(self):
        class Account(Item):
            pass

        with pytest.raises(InvalidConfiguration):
            Account.on_update(hook="test")

    def test_settings_declarations(self):
        class Account(Item):
            class Settings:
                on_update = [
                    {"fields": ["name", "slug"], "hook": "test"},
                    {"fields": ["password"], "hook": "blerg"},
                ]

        registration = Account.on_update_registration()
        assert registration.tracked_fields == ("name", "slug", "password")
        assert registration.field_hooks["password"].target == "blerg"
        assert Account._collection_name == "accounts"

    def test_invalid_settings_fail_at_class_definition(self):
        with pytest.raises(InvalidConfiguration):

            class Broken(Item):
                class Settings:
                    on_update = [{"fields": [], "hook": "test"}]

    def test_decorated_methods(self):
        class Account(Item):
            @on_field_update("name", "slug")
            def rename(self, changed):
                self.log.append(("rename", changed))

            @on_field_update("password")
            @on_field_update("name")
            def secure(self, changed):
                self.log.append(("secure", changed))

        registration = Account.on_update_registration()
        assert registration.tracked_fields == ("name", "slug", "password")
        assert registration.field_hooks["name"].target == "secure"
        assert registration.field_hooks["slug"].target == "rename"

    def test_unregistered_model_resolves_nothing(self):
        class Plain(OnUpdateMixin, Document):
            name: str

        assert Plain.on_update_registration().tracked_fields == ()


class TestResolveUpdateHooks:
    async def test_only_one_hook_when_same_for_all_fields(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name", "slug", "password"], hook="test")
        item = await changed_item(Widget, name="burner", slug="burn", password="bar")
        assert hook_names(item) == ["test"]

    async def test_all_hooks_for_modified_fields(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name", "slug"], hook="test")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await changed_item(Widget, name="burner", slug="burn", password="bar")
        assert hook_names(item) == ["test", "blerg"]

    async def test_hooks_with_at_least_one_modified_field(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name", "slug"], hook="test")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await changed_item(Widget, slug="burn", password="bar")
        assert hook_names(item) == ["test", "blerg"]

    async def test_only_hooks_for_modified_fields(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["slug"], hook="oven")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await changed_item(Widget, name="burner", password="bar")
        assert hook_names(item) == ["test", "blerg"]

    async def test_hook_only_once(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["slug"], hook="test")
        Widget.on_update(fields=["password"], hook="test")
        item = await changed_item(Widget, name="burner", slug="burn", password="bar")
        assert hook_names(item) == ["test"]


class TestSaveDispatch:
    async def test_hook_receives_changed_columns(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name", "slug", "password"], hook="test")
        item = await changed_item(Widget, name="burner", slug="burn", password="bar")
        await item.save()
        assert item.log == [("test", ["name", "slug", "password"])]

    async def test_changed_columns_include_untracked_fields(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["password"], hook="blerg")
        item = await changed_item(Widget, slug="burn", password="bar")
        await item.save()
        assert item.log == [("blerg", ["slug", "password"])]

    async def test_hooks_fire_in_registration_order(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await changed_item(Widget, password="bar", name="burner")
        await item.save()
        assert [entry[0] for entry in item.log] == ["test", "blerg"]

    async def test_callable_hook(self, memory_db):
        received = []

        class Widget(Item):
            pass

        Widget.on_update(fields=["slug"], hook=received.append)
        item = await changed_item(Widget, slug="burn")
        await item.save()
        assert received == [["slug"]]

    async def test_async_decorated_hook(self, memory_db):
        class Widget(Item):
            @on_field_update("name")
            async def renamed(self, changed):
                self.log.append(("renamed", changed))

        item = await changed_item(Widget, name="burner")
        await item.save()
        assert item.log == [("renamed", ["name"])]

    async def test_untracked_change_fires_nothing(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["password"], hook="blerg")
        item = await changed_item(Widget, slug="burn")
        await item.save()
        assert item.log == []

    async def test_insert_does_not_fire(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        item = await Widget.create(name="roxio")
        assert item.log == []

    async def test_clean_save_does_not_fire(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        item = await Widget.create(name="roxio")
        item.name = "roxio"
        await item.save()
        assert item.log == []

    async def test_delete_does_not_fire(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        item = await changed_item(Widget, name="burner")
        await item.delete()
        assert item.log == []

    async def test_each_save_dispatches_its_own_changes(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["slug"], hook="oven")
        item = await changed_item(Widget, name="burner")
        await item.save()
        item.slug = "burn"
        await item.save()
        assert item.log == [("test", ["name"]), ("oven", ["slug"])]

    async def test_pre_save_changes_are_captured(self, memory_db):
        class Widget(Item):
            @pre_save
            def slugify(self):
                if self._is_loaded:
                    self.slug = self.name.lower()

        Widget.on_update(fields=["slug"], hook="oven")
        item = await changed_item(Widget, name="Oven Door")
        await item.save()
        assert item.log == [("oven", ["name", "slug"])]

    async def test_pre_update_changes_are_captured(self, memory_db):
        class Widget(Item):
            @pre_update
            def slugify(self):
                self.slug = self.name.lower()

        Widget.on_update(fields=["slug"], hook="oven")
        item = await changed_item(Widget, name="Door")
        await item.save()
        assert item.log == [("oven", ["name", "slug"])]
        stored = await Widget.get(item.id)
        assert stored.slug == "door"

    async def test_hook_error_propagates_after_write(self, memory_db):
        class Widget(Item):
            def explode(self, changed):
                raise RuntimeError("hook failed")

        Widget.on_update(fields=["name"], hook="explode")
        Widget.on_update(fields=["slug"], hook="oven")
        item = await changed_item(Widget, name="burner", slug="burn")
        with pytest.raises(RuntimeError, match="hook failed"):
            await item.save()
        assert item.log == []
        assert item._update_dispatch is None
        stored = await Widget.get(item.id)
        assert stored.name == "burner"


class TestPartialUpdateDispatch:
    async def test_update_fires_for_given_fields(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await Widget.create(name="roxio")
        await item.update(password="bar")
        assert item.log == [("blerg", ["password"])]

    async def test_update_ignores_other_unsaved_changes(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await Widget.create(name="roxio")
        item.name = "burner"
        await item.update(password="bar")
        assert item.log == [("blerg", ["password"])]
        assert item.changed_columns == ["name"]

    async def test_update_with_unchanged_values_fires_nothing(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        item = await Widget.create(name="roxio")
        await item.update(name="roxio")
        assert item.log == []
        assert item.get_collection().updates == []

    async def test_update_reports_only_changed_values(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        Widget.on_update(fields=["password"], hook="blerg")
        item = await Widget.create(name="roxio")
        await item.update(name="roxio", password="bar")
        assert item.log == [("blerg", ["password"])]

    async def test_update_of_locally_assigned_value_fires(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        item = await changed_item(Widget, name="burner")
        await item.update(name="burner")
        assert item.log == [("test", ["name"])]
        assert item.changed_columns == []

    async def test_update_unsaved_document_raises(self, memory_db):
        class Widget(Item):
            pass

        Widget.on_update(fields=["name"], hook="test")
        item = Widget(name="roxio")
        with pytest.raises(DocumentNotFound):
            await item.update(name="burner")
        assert item.log == []
        assert item.name == "roxio"

    async def test_pre_update_changes_are_written_and_captured(self, memory_db):
        class Widget(Item):
            @pre_update
            def slugify(self):
                self.slug = self.name.lower()

        Widget.on_update(fields=["slug"], hook="oven")
        item = await Widget.create(name="roxio")
        await item.update(name="Door")
        assert item.log == [("oven", ["name", "slug"])]
        assert item.changed_columns == []
        stored = await Widget.get(item.id)
        assert stored.slug == "door"


class TestInheritance:
    async def test_child_keeps_snapshot_of_parent(self, memory_db):
        class Parent(Item):
            pass

        Parent.on_update(fields=["name"], hook="test")

        class Child(Parent):
            pass

        Parent.on_update(fields=["slug"], hook="oven")
        Child.on_update(fields=["password"], hook="blerg")

        assert Parent.on_update_registration().tracked_fields == ("name", "slug")
        assert Child.on_update_registration().tracked_fields == ("name", "password")

        child = await changed_item(Child, name="burner", slug="burn", password="bar")
        await child.save()
        assert [entry[0] for entry in child.log] == ["test", "blerg"]

    def test_child_inherits_decorated_hooks(self):
        class Parent(Item):
            @on_field_update("name")
            def renamed(self, changed):
                pass

        class Child(Parent):
            @on_field_update("slug")
            def moved(self, changed):
                pass

        assert Parent.on_update_registration().tracked_fields == ("name",)
        assert Child.on_update_registration().tracked_fields == ("name", "slug")

    def test_inherited_settings_are_not_reapplied(self):
        class Parent(Item):
            class Settings:
                on_update = [{"fields": ["name"], "hook": "test"}]

        class Child(Parent):
            pass

        Child.on_update(fields=["name"], hook="blerg")
        assert Child.on_update_registration().field_hooks["name"].target == "blerg"
        assert Parent.on_update_registration().field_hooks["name"].target == "test"
