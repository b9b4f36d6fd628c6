"""
Chat app: direct conversations, group chats and messages.

This app handles:
- DirectConversation: one per pair of users
- Group / GroupMember: group chats with admin and member roles
- Message: text, file, system and call messages with soft delete
- Attachment validation (size, name, sniffed MIME type)

Calls and meetings use chat.targets (ConversationTarget / GroupTarget) and
chat.authorization to decide who may see or act on a conversation or group.

Usage:
    from chat.services import ConversationService, MessageService

    conversation = ConversationService.get_or_create_direct(ada, grace.id).data
    MessageService.send_message(ada, conversation.target, "Lunch?")
"""
