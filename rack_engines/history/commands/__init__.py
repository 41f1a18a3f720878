from rack_engines.history.commands.base import (
    BatchCommand,
    Command,
    CommandContractError,
    CommandKind,
    command_timestamp,
)
from rack_engines.history.commands.device import (
    create_move_device_command,
    create_place_device_command,
    create_remove_device_command,
    create_update_device_face_command,
    create_update_device_name_command,
)
from rack_engines.history.commands.device_type import (
    create_add_device_type_command,
    create_delete_device_type_command,
    create_update_device_type_command,
)
from rack_engines.history.commands.rack import (
    create_clear_rack_command,
    create_replace_rack_command,
    create_update_rack_command,
)

__all__ = [
    "BatchCommand",
    "Command",
    "CommandContractError",
    "CommandKind",
    "command_timestamp",
    "create_add_device_type_command",
    "create_clear_rack_command",
    "create_delete_device_type_command",
    "create_move_device_command",
    "create_place_device_command",
    "create_remove_device_command",
    "create_replace_rack_command",
    "create_update_device_face_command",
    "create_update_device_name_command",
    "create_update_device_type_command",
    "create_update_rack_command",
]
