import pytest

from receiptbook.errors import NotFoundError, UnsupportedPlatformError, ValidationError
from receiptbook.models import BusinessProfile, InventoryItem
from receiptbook.services import inventory_svc
from receiptbook.services.profile_svc import get_business_profile, save_business_profile


class TestBusinessProfile:

    def test_second_save_updates_single_row(self, storage):
        first_id = save_business_profile(storage, BusinessProfile(name="Acme", phone="555"))
        second_id = save_business_profile(
            storage,
            BusinessProfile(name="Acme Traders", phone="0803", address="Lagos", cac_number="RC1",
                            website_uri="https://acme.ng", custom_footer="Come again"),
        )
        assert first_id == second_id
        with storage.read() as conn:
            assert conn.execute("SELECT COUNT(1) FROM business_profile").fetchone()[0] == 1
        p = get_business_profile(storage)
        assert p.id == first_id
        assert (p.name, p.phone, p.address, p.cac_number) == ("Acme Traders", "0803", "Lagos", "RC1")
        assert p.website_uri == "https://acme.ng" and p.custom_footer == "Come again"

    def test_optional_fields_cleared_on_update(self, storage):
        save_business_profile(storage, BusinessProfile(name="Acme", phone="555", address="Lagos"))
        save_business_profile(storage, BusinessProfile(name="Acme", phone="555"))
        assert get_business_profile(storage).address is None

    @pytest.mark.parametrize("name,phone,field", [("", "555", "name"), ("Acme", "  ", "phone")])
    def test_required_fields_validated_before_write(self, storage, name, phone, field):
        with pytest.raises(ValidationError) as ei:
            save_business_profile(storage, BusinessProfile(name=name, phone=phone))
        assert ei.value.field == field
        assert get_business_profile(storage) is None

    def test_absent_profile_is_none(self, storage):
        assert get_business_profile(storage) is None

    def test_offline_profile(self, offline_storage):
        assert get_business_profile(offline_storage) is None
        with pytest.raises(UnsupportedPlatformError):
            save_business_profile(offline_storage, BusinessProfile(name="Acme", phone="555"))


class TestInventory:

    def _seed(self, storage):
        inventory_svc.save_inventory_item(storage, InventoryItem(name="Soap", price=300))
        inventory_svc.save_inventory_item(storage, InventoryItem(name="Detergent", price=1200,
                                                                 description="Liquid SOAP for laundry"))
        inventory_svc.save_inventory_item(storage, InventoryItem(name="bread", price=800))
        inventory_svc.save_inventory_item(storage, InventoryItem(name="Milk 50% fat", price=500))

    def test_list_alphabetical(self, storage):
        self._seed(storage)
        names = [it.name for it in inventory_svc.get_all_inventory_items(storage)]
        assert names == ["bread", "Detergent", "Milk 50% fat", "Soap"]

    def test_search_matches_name_or_description_ignoring_case(self, storage):
        self._seed(storage)
        found = [it.name for it in inventory_svc.search_inventory_items(storage, "so")]
        assert found == ["Detergent", "Soap"]
        assert [it.name for it in inventory_svc.search_inventory_items(storage, "BREAD")] == ["bread"]
        assert inventory_svc.search_inventory_items(storage, "zzz") == []

    def test_search_treats_wildcards_literally(self, storage):
        self._seed(storage)
        assert [it.name for it in inventory_svc.search_inventory_items(storage, "50%")] == ["Milk 50% fat"]
        assert inventory_svc.search_inventory_items(storage, "%") != []
        assert inventory_svc.search_inventory_items(storage, "_") == []

    def test_blank_search_lists_everything(self, storage):
        self._seed(storage)
        assert len(inventory_svc.search_inventory_items(storage, "  ")) == 4

    def test_update_and_delete(self, storage):
        item_id = inventory_svc.save_inventory_item(storage, InventoryItem(name="Soap", price=300))
        created = inventory_svc.get_inventory_item_by_id(storage, item_id)
        inventory_svc.update_inventory_item(storage, item_id, InventoryItem(name="Bar soap", price=350,
                                                                            description="Bathing"))
        it = inventory_svc.get_inventory_item_by_id(storage, item_id)
        assert (it.name, it.price, it.description) == ("Bar soap", 350.0, "Bathing")
        assert it.created_at == created.created_at
        assert inventory_svc.delete_inventory_item(storage, item_id) is True
        assert inventory_svc.get_inventory_item_by_id(storage, item_id) is None

    def test_update_missing_item(self, storage):
        with pytest.raises(NotFoundError):
            inventory_svc.update_inventory_item(storage, 99, InventoryItem(name="x", price=1))

    @pytest.mark.parametrize("name,price,field", [(" ", 10, "name"), ("Soap", -1, "price")])
    def test_validation(self, storage, name, price, field):
        with pytest.raises(ValidationError) as ei:
            inventory_svc.save_inventory_item(storage, InventoryItem(name=name, price=price))
        assert ei.value.field == field

    def test_selected_item_is_copied_into_receipt_line(self, storage):
        item_id = inventory_svc.save_inventory_item(storage, InventoryItem(name="Soap", price=300))
        inv = inventory_svc.get_inventory_item_by_id(storage, item_id)
        line = inventory_svc.to_receipt_item(inv, 2)
        assert (line.description, line.quantity, line.price) == ("Soap", 2.0, 300.0)
        assert line.id is None and line.receipt_id is None
        inventory_svc.update_inventory_item(storage, item_id, InventoryItem(name="Soap", price=999))
        assert line.price == 300.0

    def test_offline_inventory(self, offline_storage):
        assert inventory_svc.get_all_inventory_items(offline_storage) == []
        assert inventory_svc.search_inventory_items(offline_storage, "so") == []
        with pytest.raises(UnsupportedPlatformError):
            inventory_svc.save_inventory_item(offline_storage, InventoryItem(name="Soap", price=1))
