"""
Tests for the facade, command routing and the JSON line loop.
"""

import io
import json

import pytest

from vending_machine.application.api_facade import VendingMachineFacade
from vending_machine.application.command_handler import (
    CommandHandler,
    vending_machine_commands,
)
from vending_machine.core.value_objects import CoinKind
from vending_machine.main import parse_args, process_lines


@pytest.fixture
def api(stocked_engine):
    """Facade over the stocked engine."""
    return VendingMachineFacade(engine=stocked_engine)


@pytest.fixture
def handler(api):
    return CommandHandler(api)


# =============================================================================
# Facade
# =============================================================================


class TestVendingMachineFacade:
    """Tests for VendingMachineFacade."""

    def test_engine_and_inventory_are_shared(self, api, stocked_engine):
        """Test an injected engine brings its own store."""
        assert api.engine is stocked_engine
        assert api.inventory is stocked_engine.inventory

    def test_load_products_from_dicts(self):
        """Test products given as dictionaries."""
        api = VendingMachineFacade()
        response = api.load_products([{"name": "Gum", "price": "0.40", "stock": 3}])
        assert response["success"] is True
        assert response["data"] == {"value": 1}
        assert api.inventory.get_product("Gum").stock == 3

    def test_load_products_invalid_data(self):
        """Test a malformed entry is reported, not raised."""
        response = VendingMachineFacade().load_products([{"price": "0.40"}])
        assert response["success"] is False
        assert response["message"].startswith("Invalid product data")

    def test_load_products_nan_price(self):
        """Test a NaN price is reported as invalid data."""
        api = VendingMachineFacade()
        response = api.load_products([{"name": "X", "price": "NaN", "stock": 1}])
        assert response["success"] is False
        assert response["message"].startswith("Invalid product data")
        assert api.inventory.product_count == 0

    def test_load_products_fractional_stock(self):
        """Test fractional stock is refused instead of truncated."""
        api = VendingMachineFacade()
        response = api.load_products([{"name": "X", "price": "1.00", "stock": 2.9}])
        assert response["success"] is False
        assert api.inventory.get_product("X") is None

    def test_fractional_coin_and_unload_quantities(self, api):
        """Test fractional coin loads and product unloads are refused."""
        loaded = api.load_coins([{"coin": 100, "quantity": 1.5}])
        assert loaded["success"] is False
        assert loaded["message"].startswith("Invalid coin data")
        assert api.inventory.coin_count(CoinKind.ONE_POUND) == 10
        unloaded = api.unload_products([{"name": "Soda", "quantity": 0.5}])
        assert unloaded["success"] is False
        assert api.inventory.get_product("Soda").stock == 10

    def test_can_give_change_nan(self, api):
        """Test a NaN amount is a failed check, not a crash."""
        response = api.can_give_change("NaN")
        assert response["success"] is False
        assert response["data"]["error"] == "cannot_give_change"

    def test_load_coins_by_name(self):
        """Test coins may be named by their display name."""
        api = VendingMachineFacade()
        response = api.load_coins([{"coin": "20p", "quantity": 4}])
        assert response["success"] is True
        assert api.inventory.coin_count(CoinKind.TWENTY_PENCE) == 4

    def test_load_coins_invalid_coin(self):
        """Test an unknown denomination."""
        response = VendingMachineFacade().load_coins([{"coin": 3, "quantity": 1}])
        assert response["success"] is False
        assert response["message"].startswith("Invalid coin data")

    def test_unload_products_partial_flag(self, api):
        """Test over-requests only empty a product with allow_partial."""
        refused = api.unload_products([{"name": "Chips", "quantity": 50}])
        assert refused["data"] == {"value": 0}
        accepted = api.unload_products([{"name": "Chips", "quantity": 50}], allow_partial=True)
        assert accepted["data"] == {"value": 5}
        assert api.inventory.get_product("Chips") is None

    def test_unload_coins_partial_flag(self, api):
        """Test coin over-requests are capped only with allow_partial."""
        response = api.unload_coins([{"coin": 100, "quantity": 50}], allow_partial=True)
        assert response["data"] == {"value": 10}
        assert api.inventory.coin_count(CoinKind.ONE_POUND) == 0

    def test_stock_defaults(self):
        """Test the demo stock."""
        api = VendingMachineFacade()
        response = api.stock_defaults()
        assert response["success"] is True
        assert api.inventory.product_count == 3
        assert api.inventory.coin_count(CoinKind.TWENTY_PENCE) == 30

    def test_purchase_flow(self, api):
        """Test selecting and paying through the facade."""
        selected = api.select_product("Soda")
        assert selected["data"]["value"] == {"name": "Soda", "price": "1.50", "stock": 10}

        partial = api.insert_coin(100)
        assert partial["success"] is False
        assert partial["data"]["error"] == "insufficient_funds"
        assert partial["data"]["details"]["remaining"] == "0.50"

        done = api.insert_coin("50p")
        assert done["success"] is True
        assert done["message"] == "Enjoy your Soda!"
        assert done["data"]["details"]["change"] == []

    def test_return_coins(self, api):
        """Test coins inserted so far come back by name."""
        api.select_product("Soda")
        api.insert_coin(100)
        response = api.return_coins()
        assert response["data"] == {"coins": ["£1"]}

    def test_can_give_change(self, api):
        """Test change feasibility through the facade."""
        assert api.can_give_change("1.50")["success"] is True
        assert api.can_give_change("0.25")["data"]["error"] == "cannot_give_change"

    def test_get_product_name_by_index(self, api):
        """Test index lookups and their failures."""
        assert api.get_product_name_by_index(2)["data"] == {"name": "Candy"}
        missing = api.get_product_name_by_index(7)
        assert missing["success"] is False
        assert missing["message"] == "Invalid product index: 7"
        assert missing["data"] == {"error": "index_out_of_range"}
        assert api.get_product_name_by_index("x")["success"] is False

    def test_machine_status(self, api):
        """Test the combined status view."""
        api.select_product("Candy")
        api.insert_coin(50)
        data = api.machine_status()["data"]
        assert data["products"][0] == "0) Soda: £1.50 (Stock: 10)"
        assert data["coins"][-1] == "Total money in machine: £20.00"
        assert data["phase"] == "product_selected"
        assert data["inserted"] == "0.50"


# =============================================================================
# Command Handler
# =============================================================================


class TestCommandHandler:
    """Tests for CommandHandler."""

    def test_unknown_command(self, handler):
        """Test unknown commands are rejected."""
        response = handler.execute({"command": "dance", "command_id": 7})
        assert response["command_id"] == 7
        assert response["success"] is False
        assert response["message"] == "Unknown command: dance"

    def test_missing_arguments(self, handler):
        """Test required arguments are checked."""
        response = handler.execute({"command": "select_product", "data": {}})
        assert response["success"] is False
        assert response["message"] == "Missing required arguments: ['name']"

    def test_list_commands(self, handler):
        """Test the command catalogue."""
        response = handler.execute({"command": "list_commands"})
        names = {cmd["name"] for cmd in response["data"]}
        assert {"select_product", "insert_coin", "return_coins", "machine_status"} <= names

    def test_routes_to_facade(self, handler):
        """Test a command reaches the facade and its response is unpacked."""
        response = handler.execute(
            {"command": "select_product", "command_id": "a1", "data": {"name": "Chips"}}
        )
        assert response["success"] is True
        assert response["data"]["value"]["name"] == "Chips"

    def test_optional_arguments_forwarded(self, handler):
        """Test optional arguments reach the handler when given."""
        response = handler.execute(
            {"command": "product_status", "data": {"include_index": True}}
        )
        assert response["data"]["lines"][0].startswith("0) Soda")

    def test_handler_exception_is_reported(self, handler):
        """Test exceptions raised by a handler become failed responses."""

        def explode():
            raise RuntimeError("jammed")

        handler.register("explode", explode, [])
        response = handler.execute({"command": "explode"})
        assert response["success"] is False
        assert response["message"] == "Error: jammed"

    def test_non_dict_result(self, handler):
        """Test plain return values are wrapped as data."""
        handler.register("answer", lambda: 42, [])
        response = handler.execute({"command": "answer"})
        assert response["success"] is True
        assert response["data"] == 42

    def test_one_shot_helper(self, api):
        """Test the single-command helper."""
        response = vending_machine_commands({"command": "coins_status"}, api)
        assert response["success"] is True
        assert response["data"]["lines"][0] == "- £1: 10 coins (Value: £10.00)"


# =============================================================================
# Command Loop
# =============================================================================


class TestProcessLines:
    """Tests for the JSON line loop."""

    def test_executes_commands(self, handler):
        """Test each line produces one JSON response."""
        lines = [
            json.dumps({"command": "select_product", "command_id": 1, "data": {"name": "Chips"}}),
            "",
            "ping",
            json.dumps({"command": "insert_coin", "command_id": 2, "data": {"coin": 100}}),
        ]
        out = io.StringIO()

        executed = process_lines(lines, handler, out)

        responses = [json.loads(line) for line in out.getvalue().splitlines()]
        assert executed == 2
        assert [r["command_id"] for r in responses] == [1, 2]
        assert responses[1]["message"] == "Enjoy your Chips!"

    def test_invalid_json(self, handler):
        """Test unparsable lines get an error response."""
        out = io.StringIO()
        assert process_lines(["{not json"], handler, out) == 0
        response = json.loads(out.getvalue())
        assert response["success"] is False
        assert response["message"].startswith("Invalid JSON")

    def test_non_object(self, handler):
        """Test JSON that is not an object is refused."""
        out = io.StringIO()
        process_lines(["[1, 2]"], handler, out)
        assert json.loads(out.getvalue())["message"] == "Command must be a JSON object"

    def test_parse_args(self):
        """Test command line flags."""
        args = parse_args(["-s", "--debug"])
        assert args.stock_defaults is True
        assert args.debug is True
        assert parse_args([]).stock_defaults is False
