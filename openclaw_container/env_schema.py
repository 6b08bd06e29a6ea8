"""Inventory of recognized environment variables.

Schema-driven: every variable the env layer reads is declared here with the
document path it targets and the type it is parsed as. Add new mappings to
these tables; the env layer applies them generically.

Value types:
  str        - passthrough
  int        - integer
  bool       - 1/true/yes/on or 0/false/no/off, anything else is an error
  csv        - comma-separated list of strings
  csv_smart  - comma-separated, integers for numeric values (Telegram user IDs)
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Literal

ValueType = Literal["str", "int", "bool", "csv", "csv_smart"]


@dataclass(frozen=True)
class EnvBinding:
    """One environment variable mapped to one leaf path.

    Attributes:
        env: Environment variable name
        path: Dotted path relative to the group's root
        type: How the raw string is parsed
        description: Human-readable summary for the inventory listing
    """

    env: str
    path: str
    type: ValueType = "str"
    description: str = ""


@dataclass(frozen=True)
class ChannelSpec:
    """A messaging channel configured from env.

    The channel is only configured when its gate is open: every gate variable
    set (token gates), or the single gate variable parsed as true (bool gate).
    Token gate values are written into ``token_fields`` in order.
    """

    key: str
    gates: tuple[str, ...]
    gate_kind: Literal["token", "bool"] = "token"
    token_fields: tuple[str, ...] = ()
    fields: tuple[EnvBinding, ...] = field(default_factory=tuple)

    @property
    def root(self) -> str:
        return f"channels.{self.key}"


def _b(env: str, path: str, type_: ValueType = "str", description: str = "") -> EnvBinding:
    return EnvBinding(env=env, path=path, type=type_, description=description)


# ── Gateway / core settings ───────────────────────────────────────────────────

GATEWAY_PORT_ENV = "OPENCLAW_GATEWAY_PORT"
GATEWAY_TOKEN_ENV = "OPENCLAW_GATEWAY_TOKEN"
PRIMARY_MODEL_ENV = "OPENCLAW_PRIMARY_MODEL"

GATEWAY_FIELDS: tuple[EnvBinding, ...] = (
    _b(GATEWAY_PORT_ENV, "port", "int", "Gateway listen port"),
    _b("OPENCLAW_GATEWAY_BIND", "bind", "str", "Gateway bind mode"),
)

AGENT_DEFAULT_FIELDS: tuple[EnvBinding, ...] = (
    _b(PRIMARY_MODEL_ENV, "model.primary", "str", "Primary model as provider/model"),
)

# ── Channels ──────────────────────────────────────────────────────────────────

CHANNELS: tuple[ChannelSpec, ...] = (
    ChannelSpec(
        key="telegram",
        gates=("TELEGRAM_BOT_TOKEN",),
        token_fields=("botToken",),
        fields=(
            _b("TELEGRAM_DM_POLICY", "dmPolicy"),
            _b("TELEGRAM_GROUP_POLICY", "groupPolicy"),
            _b("TELEGRAM_REPLY_TO_MODE", "replyToMode"),
            _b("TELEGRAM_CHUNK_MODE", "chunkMode"),
            _b("TELEGRAM_STREAM_MODE", "streamMode"),
            _b("TELEGRAM_REACTION_NOTIFICATIONS", "reactionNotifications"),
            _b("TELEGRAM_REACTION_LEVEL", "reactionLevel"),
            _b("TELEGRAM_PROXY", "proxy"),
            _b("TELEGRAM_WEBHOOK_URL", "webhookUrl"),
            _b("TELEGRAM_WEBHOOK_SECRET", "webhookSecret"),
            _b("TELEGRAM_WEBHOOK_PATH", "webhookPath"),
            _b("TELEGRAM_MESSAGE_PREFIX", "messagePrefix"),
            _b("TELEGRAM_LINK_PREVIEW", "linkPreview", "bool"),
            _b("TELEGRAM_ACTIONS_REACTIONS", "actions.reactions", "bool"),
            _b("TELEGRAM_ACTIONS_STICKER", "actions.sticker", "bool"),
            _b("TELEGRAM_TEXT_CHUNK_LIMIT", "textChunkLimit", "int"),
            _b("TELEGRAM_MEDIA_MAX_MB", "mediaMaxMb", "int"),
            _b("TELEGRAM_ALLOW_FROM", "allowFrom", "csv_smart"),
            _b("TELEGRAM_GROUP_ALLOW_FROM", "groupAllowFrom", "csv_smart"),
            _b("TELEGRAM_INLINE_BUTTONS", "capabilities.inlineButtons"),
        ),
    ),
    ChannelSpec(
        key="discord",
        gates=("DISCORD_BOT_TOKEN",),
        token_fields=("token",),
        fields=(
            _b("DISCORD_DM_POLICY", "dm.policy"),
            _b("DISCORD_GROUP_POLICY", "groupPolicy"),
            _b("DISCORD_REPLY_TO_MODE", "replyToMode"),
            _b("DISCORD_CHUNK_MODE", "chunkMode"),
            _b("DISCORD_REACTION_NOTIFICATIONS", "reactionNotifications"),
            _b("DISCORD_MESSAGE_PREFIX", "messagePrefix"),
            _b("DISCORD_ALLOW_BOTS", "allowBots", "bool"),
            _b("DISCORD_ACTIONS_REACTIONS", "actions.reactions", "bool"),
            _b("DISCORD_ACTIONS_STICKERS", "actions.stickers", "bool"),
            _b("DISCORD_ACTIONS_EMOJI_UPLOADS", "actions.emojiUploads", "bool"),
            _b("DISCORD_ACTIONS_STICKER_UPLOADS", "actions.stickerUploads", "bool"),
            _b("DISCORD_ACTIONS_POLLS", "actions.polls", "bool"),
            _b("DISCORD_ACTIONS_PERMISSIONS", "actions.permissions", "bool"),
            _b("DISCORD_ACTIONS_MESSAGES", "actions.messages", "bool"),
            _b("DISCORD_ACTIONS_THREADS", "actions.threads", "bool"),
            _b("DISCORD_ACTIONS_PINS", "actions.pins", "bool"),
            _b("DISCORD_ACTIONS_SEARCH", "actions.search", "bool"),
            _b("DISCORD_ACTIONS_MEMBER_INFO", "actions.memberInfo", "bool"),
            _b("DISCORD_ACTIONS_ROLE_INFO", "actions.roleInfo", "bool"),
            _b("DISCORD_ACTIONS_CHANNEL_INFO", "actions.channelInfo", "bool"),
            _b("DISCORD_ACTIONS_CHANNELS", "actions.channels", "bool"),
            _b("DISCORD_ACTIONS_VOICE_STATUS", "actions.voiceStatus", "bool"),
            _b("DISCORD_ACTIONS_EVENTS", "actions.events", "bool"),
            _b("DISCORD_ACTIONS_ROLES", "actions.roles", "bool"),
            _b("DISCORD_ACTIONS_MODERATION", "actions.moderation", "bool"),
            _b("DISCORD_TEXT_CHUNK_LIMIT", "textChunkLimit", "int"),
            _b("DISCORD_MAX_LINES_PER_MESSAGE", "maxLinesPerMessage", "int"),
            _b("DISCORD_MEDIA_MAX_MB", "mediaMaxMb", "int"),
            _b("DISCORD_HISTORY_LIMIT", "historyLimit", "int"),
            _b("DISCORD_DM_HISTORY_LIMIT", "dmHistoryLimit", "int"),
            _b("DISCORD_DM_ALLOW_FROM", "dm.allowFrom", "csv"),
        ),
    ),
    ChannelSpec(
        key="slack",
        gates=("SLACK_BOT_TOKEN", "SLACK_APP_TOKEN"),
        token_fields=("botToken", "appToken"),
        fields=(
            _b("SLACK_USER_TOKEN", "userToken"),
            _b("SLACK_SIGNING_SECRET", "signingSecret"),
            _b("SLACK_MODE", "mode"),
            _b("SLACK_WEBHOOK_PATH", "webhookPath"),
            _b("SLACK_DM_POLICY", "dm.policy"),
            _b("SLACK_GROUP_POLICY", "groupPolicy"),
            _b("SLACK_REPLY_TO_MODE", "replyToMode"),
            _b("SLACK_REACTION_NOTIFICATIONS", "reactionNotifications"),
            _b("SLACK_CHUNK_MODE", "chunkMode"),
            _b("SLACK_MESSAGE_PREFIX", "messagePrefix"),
            _b("SLACK_ALLOW_BOTS", "allowBots", "bool"),
            _b("SLACK_ACTIONS_REACTIONS", "actions.reactions", "bool"),
            _b("SLACK_ACTIONS_MESSAGES", "actions.messages", "bool"),
            _b("SLACK_ACTIONS_PINS", "actions.pins", "bool"),
            _b("SLACK_ACTIONS_MEMBER_INFO", "actions.memberInfo", "bool"),
            _b("SLACK_ACTIONS_EMOJI_LIST", "actions.emojiList", "bool"),
            _b("SLACK_HISTORY_LIMIT", "historyLimit", "int"),
            _b("SLACK_TEXT_CHUNK_LIMIT", "textChunkLimit", "int"),
            _b("SLACK_MEDIA_MAX_MB", "mediaMaxMb", "int"),
            _b("SLACK_DM_ALLOW_FROM", "dm.allowFrom", "csv"),
        ),
    ),
    ChannelSpec(
        key="whatsapp",
        gates=("WHATSAPP_ENABLED",),
        gate_kind="bool",
        fields=(
            _b("WHATSAPP_DM_POLICY", "dmPolicy"),
            _b("WHATSAPP_GROUP_POLICY", "groupPolicy"),
            _b("WHATSAPP_MESSAGE_PREFIX", "messagePrefix"),
            _b("WHATSAPP_SELF_CHAT_MODE", "selfChatMode", "bool"),
            _b("WHATSAPP_SEND_READ_RECEIPTS", "sendReadReceipts", "bool"),
            _b("WHATSAPP_ACTIONS_REACTIONS", "actions.reactions", "bool"),
            _b("WHATSAPP_MEDIA_MAX_MB", "mediaMaxMb", "int"),
            _b("WHATSAPP_HISTORY_LIMIT", "historyLimit", "int"),
            _b("WHATSAPP_DM_HISTORY_LIMIT", "dmHistoryLimit", "int"),
            _b("WHATSAPP_ALLOW_FROM", "allowFrom", "csv"),
            _b("WHATSAPP_GROUP_ALLOW_FROM", "groupAllowFrom", "csv"),
            _b("WHATSAPP_ACK_REACTION_EMOJI", "ackReaction.emoji"),
            _b("WHATSAPP_ACK_REACTION_DIRECT", "ackReaction.direct", "bool"),
            _b("WHATSAPP_ACK_REACTION_GROUP", "ackReaction.group"),
        ),
    ),
)

# ── Tools ─────────────────────────────────────────────────────────────────────

DEEPGRAM_ENV = "DEEPGRAM_API_KEY"

BROWSER_GATE = "BROWSER_CDP_URL"

BROWSER_FIELDS: tuple[EnvBinding, ...] = (
    _b(BROWSER_GATE, "cdpUrl", "str", "Remote Chrome DevTools endpoint"),
    _b("BROWSER_EVALUATE_ENABLED", "evaluateEnabled", "bool"),
    _b("BROWSER_SNAPSHOT_MODE", "snapshotDefaults.mode"),
    _b("BROWSER_REMOTE_TIMEOUT_MS", "remoteCdpTimeoutMs", "int"),
    _b("BROWSER_REMOTE_HANDSHAKE_TIMEOUT_MS", "remoteCdpHandshakeTimeoutMs", "int"),
    _b("BROWSER_DEFAULT_PROFILE", "defaultProfile"),
)

# ── Hooks (webhook automation) ────────────────────────────────────────────────

HOOKS_GATE = "HOOKS_ENABLED"

HOOKS_FIELDS: tuple[EnvBinding, ...] = (
    _b("HOOKS_TOKEN", "token", "str", "Shared secret webhook callers present"),
    _b("HOOKS_PATH", "path", "str", "Webhook path exempted from proxy basic auth"),
)

# ── Convention passthrough ────────────────────────────────────────────────────
# OPENCLAW_JSON__path__to__key=value -> {"path": {"to": {"key": value}}}

CONVENTION_PREFIX = "OPENCLAW_JSON__"
CONVENTION_SEPARATOR = "__"

# ── Variables that must never feed the document ───────────────────────────────
# These subtrees are authored in the custom JSON document only.

JSON_ONLY_VARIABLES: dict[str, str] = {
    "TELEGRAM_GROUPS": "channels.telegram.groups",
    "DISCORD_GUILDS": "channels.discord.guilds",
    "SLACK_CHANNELS": "channels.slack.channels",
    "OPENCLAW_BINDINGS": "bindings",
}

# ── Secrets (redacted from logs, required at startup) ─────────────────────────

AUTH_USERNAME_ENV = "AUTH_USERNAME"
AUTH_PASSWORD_ENV = "AUTH_PASSWORD"

REQUIRED_SECRETS: tuple[str, ...] = (GATEWAY_TOKEN_ENV, AUTH_PASSWORD_ENV)


def is_secret_variable(name: str) -> bool:
    """True for variables whose values must never reach a log line."""
    upper = name.upper()
    return any(marker in upper for marker in ("TOKEN", "SECRET", "PASSWORD", "API_KEY", "ACCESS_KEY"))


__all__ = [
    "ValueType",
    "EnvBinding",
    "ChannelSpec",
    "GATEWAY_PORT_ENV",
    "GATEWAY_TOKEN_ENV",
    "GATEWAY_FIELDS",
    "AGENT_DEFAULT_FIELDS",
    "CHANNELS",
    "DEEPGRAM_ENV",
    "BROWSER_GATE",
    "BROWSER_FIELDS",
    "HOOKS_GATE",
    "HOOKS_FIELDS",
    "CONVENTION_PREFIX",
    "CONVENTION_SEPARATOR",
    "JSON_ONLY_VARIABLES",
    "AUTH_USERNAME_ENV",
    "AUTH_PASSWORD_ENV",
    "REQUIRED_SECRETS",
    "is_secret_variable",
]
