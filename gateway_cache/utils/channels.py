"""Discord channel type constants and helpers."""

# Channel type constants for reference
CHANNEL_TYPE_TEXT = 0
CHANNEL_TYPE_DM = 1
CHANNEL_TYPE_VOICE = 2
CHANNEL_TYPE_GROUP_DM = 3
CHANNEL_TYPE_CATEGORY = 4
CHANNEL_TYPE_ANNOUNCEMENT = 5
CHANNEL_TYPE_ANNOUNCEMENT_THREAD = 10
CHANNEL_TYPE_PUBLIC_THREAD = 11
CHANNEL_TYPE_PRIVATE_THREAD = 12
CHANNEL_TYPE_STAGE = 13
CHANNEL_TYPE_DIRECTORY = 14
CHANNEL_TYPE_FORUM = 15
CHANNEL_TYPE_MEDIA = 16


def is_thread(channel_type: int) -> bool:
    """Check if channel type is a thread."""
    return channel_type in (
        CHANNEL_TYPE_ANNOUNCEMENT_THREAD,
        CHANNEL_TYPE_PUBLIC_THREAD,
        CHANNEL_TYPE_PRIVATE_THREAD,
    )


def channel_type_name(channel_type: int) -> str:
    """Get human-readable channel type name."""
    names = {
        CHANNEL_TYPE_TEXT: "text",
        CHANNEL_TYPE_DM: "private",
        CHANNEL_TYPE_VOICE: "voice",
        CHANNEL_TYPE_GROUP_DM: "group_dm",
        CHANNEL_TYPE_CATEGORY: "category",
        CHANNEL_TYPE_ANNOUNCEMENT: "announcement",
        CHANNEL_TYPE_ANNOUNCEMENT_THREAD: "announcement_thread",
        CHANNEL_TYPE_PUBLIC_THREAD: "public_thread",
        CHANNEL_TYPE_PRIVATE_THREAD: "private_thread",
        CHANNEL_TYPE_STAGE: "stage",
        CHANNEL_TYPE_DIRECTORY: "directory",
        CHANNEL_TYPE_FORUM: "forum",
        CHANNEL_TYPE_MEDIA: "media",
    }
    return names.get(channel_type, f"unknown({channel_type})")
