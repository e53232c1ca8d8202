# Tick timing (seconds)
CLIENT_TICK_S = 0.033
BOT_ACTION_INTERVAL_S = 1.0

# Channel kinds
CH_DIRECT = "direct"
CH_GROUP = "group"
CH_BROADCAST = "broadcast"
CH_SYSTEM = "system"

# Only these channels carry a resolvable sender.
COMMAND_CHANNELS = (CH_DIRECT, CH_GROUP)

# Command tags (first token, case-sensitive)
CMD_INVITE = "invite"
CMD_KICK = "kick"
CMD_KICK_ALL = "kick-all"
CMD_ADMIN = "admin"
CMD_BAN = "ban"
CMD_UNBAN = "unban"
CMD_INFO = "info"
CMD_ROLL = "roll"
CMD_CHEESE = "cheese"

COMMANDS = frozenset(
    {
        CMD_INVITE,
        CMD_KICK,
        CMD_KICK_ALL,
        CMD_ADMIN,
        CMD_BAN,
        CMD_UNBAN,
        CMD_INFO,
        CMD_ROLL,
        CMD_CHEESE,
    }
)

# Secrets file keys owned by the roster store
K_ADMINISTRATORS = "administrators"
K_BANNED = "banned"

DEFAULT_CHEESE_ITEM = "Dwarven Cheese"

# Reply texts
MSG_NOT_ADMIN = "You are not an admin"
MSG_BANNED = "You are banned"
MSG_ROLL_USAGE = "Roll requires a number greater than 1"
