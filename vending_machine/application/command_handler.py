"""
Command Handler - Routes named commands to facade methods.

Provides command routing with argument validation and error handling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from vending_machine.loggers import logger


# Type alias for command handlers
CommandHandlerFunc = Callable[..., Any]


@dataclass
class CommandResponse:
    """
    Standardized response for command execution.

    Attributes:
        command_id: The ID of the executed command.
        success: Whether the command succeeded.
        message: Human-readable message.
        data: Optional response data.
    """

    command_id: Optional[Any] = None
    success: bool = False
    message: Optional[str] = None
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert the response to a dictionary."""
        return {
            "command_id": self.command_id,
            "success": self.success,
            "message": self.message,
            "data": self.data,
        }


@dataclass
class CommandDefinition:
    """
    Definition of a command.

    Attributes:
        name: Command name.
        handler: Handler function.
        required_args: Argument names that must be present.
        optional_args: Argument names passed through when present.
        description: Human-readable description.
    """

    name: str
    handler: CommandHandlerFunc
    required_args: list[str]
    optional_args: list[str] = field(default_factory=list)
    description: str = ""


class CommandHandler:
    """
    Routes commands to their appropriate handlers.

    Commands arrive as ``{"command", "command_id", "data"}`` dictionaries.
    """

    def __init__(self, api: Any) -> None:
        """
        Initialize the command handler.

        Args:
            api: The VendingMachineFacade instance.
        """
        self._api = api
        self._commands: dict[str, CommandDefinition] = {}
        self._register_default_commands()

    def _register_default_commands(self) -> None:
        """Register all default command handlers."""
        # Stocking
        self.register(
            "load_products",
            self._api.load_products,
            ["products"],
            "Load products or add stock to existing ones",
        )
        self.register(
            "unload_products",
            self._api.unload_products,
            ["products"],
            "Remove product units",
            optional_args=["allow_partial"],
        )
        self.register(
            "load_coins",
            self._api.load_coins,
            ["coins"],
            "Add coins to the machine",
        )
        self.register(
            "unload_coins",
            self._api.unload_coins,
            ["coins"],
            "Remove coins from the machine",
            optional_args=["allow_partial"],
        )
        self.register(
            "stock_defaults",
            self._api.stock_defaults,
            [],
            "Load the demo products and coins",
        )

        # Purchase flow
        self.register(
            "select_product",
            self._api.select_product,
            ["name"],
            "Select a product to buy",
        )
        self.register(
            "insert_coin",
            self._api.insert_coin,
            ["coin"],
            "Insert a coin for the selected product",
        )
        self.register(
            "return_coins",
            self._api.return_coins,
            [],
            "Cancel the purchase and return inserted coins",
        )
        self.register(
            "can_give_change",
            self._api.can_give_change,
            ["amount"],
            "Check whether an amount of change can be paid",
        )

        # Status
        self.register(
            "get_product_name_by_index",
            self._api.get_product_name_by_index,
            ["index"],
            "Get a product name by its position",
        )
        self.register(
            "product_status",
            self._api.product_status,
            [],
            "List products",
            optional_args=["include_index", "include_total"],
        )
        self.register(
            "coins_status",
            self._api.coins_status,
            [],
            "List coins",
            optional_args=["include_total"],
        )
        self.register(
            "machine_status",
            self._api.machine_status,
            [],
            "Show products, coins and transaction state",
        )

    def register(
        self,
        command_name: str,
        handler: CommandHandlerFunc,
        required_args: list[str],
        description: str = "",
        optional_args: Optional[list[str]] = None,
    ) -> None:
        """
        Register a command handler.

        Args:
            command_name: The name of the command.
            handler: The handler function.
            required_args: List of required argument names.
            description: Human-readable description.
            optional_args: Argument names forwarded only when given.
        """
        self._commands[command_name] = CommandDefinition(
            name=command_name,
            handler=handler,
            required_args=required_args,
            optional_args=optional_args or [],
            description=description,
        )

    def get_available_commands(self) -> list[dict[str, Any]]:
        """Get list of available commands with their descriptions."""
        return [
            {
                "name": cmd.name,
                "required_args": cmd.required_args,
                "optional_args": cmd.optional_args,
                "description": cmd.description,
            }
            for cmd in self._commands.values()
        ]

    def execute(self, command_data: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a command based on command data.

        Args:
            command_data: Dictionary containing 'command', 'command_id', and 'data'.

        Returns:
            Response dictionary with execution result.
        """
        command = command_data.get("command")
        command_id = command_data.get("command_id")
        data = command_data.get("data", {}) or {}

        response = CommandResponse(command_id=command_id)

        if command == "list_commands":
            response.success = True
            response.data = self.get_available_commands()
            return response.to_dict()

        if command not in self._commands:
            logger.warning(f"Unknown command: {command}")
            response.message = f"Unknown command: {command}"
            return response.to_dict()

        definition = self._commands[command]

        try:
            kwargs = {arg: data.get(arg) for arg in definition.required_args}

            missing = [arg for arg in definition.required_args if kwargs.get(arg) is None]
            if missing:
                response.message = f"Missing required arguments: {missing}"
                return response.to_dict()

            kwargs.update({arg: data[arg] for arg in definition.optional_args if arg in data})

            result = definition.handler(**kwargs)

            if isinstance(result, dict):
                response.success = result.get("success", False)
                response.message = result.get("message")
                response.data = result.get("data")
            else:
                response.success = True
                response.data = result

        except Exception as e:
            logger.error(f"Error executing command '{command}': {e}")
            response.success = False
            response.message = f"Error: {e}"

        return response.to_dict()


def vending_machine_commands(command_data: dict[str, Any], api: Any) -> dict[str, Any]:
    """
    Execute a single command on the vending machine API.

    Args:
        command_data: Dictionary containing command name, ID, and data.
        api: The VendingMachineFacade instance.

    Returns:
        Response dictionary with execution result.
    """
    handler = CommandHandler(api)
    return handler.execute(command_data)
