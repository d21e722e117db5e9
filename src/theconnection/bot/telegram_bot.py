"""
Bot principal de Telegram para The Connection.

Orquesta los handlers del onboarding "Start Here" y de solicitudes de ingreso.
"""

from typing import Optional

import structlog
from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)
from telegram.helpers import escape_markdown

from theconnection.config import get_settings
from theconnection.database import UserRepository
from theconnection.bot.handlers import (
    StartHereHandler,
    JoinRequestHandler,
    WAITING_CATEGORIES,
    WAITING_COMMUNITIES,
)

logger = structlog.get_logger()


class ConnectionBot:
    """
    Bot principal de The Connection.

    Responsabilidades:
    - Manejar comandos y callbacks de Telegram
    - Guiar a usuarios nuevos por Start Here
    - Gestionar el ciclo de vida del bot
    """

    def __init__(self, token: Optional[str] = None):
        settings = get_settings()
        self.token = token or settings.telegram_bot_token

        self.application: Optional[Application] = None

        # Repositories
        self.user_repo = UserRepository()

        # Handlers
        self.start_here = StartHereHandler(settings=settings, user_repo=self.user_repo)
        self.join_requests = JoinRequestHandler(
            user_repo=self.user_repo,
            community_repo=self.start_here.community_repo,
            membership=self.start_here.membership,
        )

    def setup(self, use_webhook: bool = False) -> Application:
        """Configura la aplicación de Telegram."""
        builder = Application.builder().token(self.token)
        if use_webhook:
            builder = builder.updater(None)
        self.application = builder.build()

        # ConversationHandler para Start Here
        start_here_conv = ConversationHandler(
            entry_points=[CommandHandler("start", self.start_here.start)],
            states={
                WAITING_CATEGORIES: [
                    CallbackQueryHandler(
                        self.start_here.handle_category,
                        pattern=r"^cat_",
                    ),
                ],
                WAITING_COMMUNITIES: [
                    CallbackQueryHandler(
                        self.start_here.handle_community,
                        pattern=r"^comm_",
                    ),
                ],
            },
            fallbacks=[
                CommandHandler("cancel", self.start_here.cancel),
                CommandHandler("start", self.start_here.start),
            ],
            allow_reentry=True,
        )

        self.application.add_handler(start_here_conv)

        # Otros comandos (fuera del onboarding)
        self.application.add_handler(
            CommandHandler("categories", self._show_categories)
        )
        self.application.add_handler(
            CommandHandler("help", self._help)
        )

        # Revisión de solicitudes (siempre activos)
        self.application.add_handler(
            CallbackQueryHandler(
                self.join_requests.handle_review,
                pattern=r"^(approve|deny)_\d+_\d+$",
            )
        )
        self.application.add_handler(
            CallbackQueryHandler(
                self.join_requests.handle_noop,
                pattern=r"^noop$",
            )
        )

        # Mensaje por defecto (fuera de conversaciones)
        self.application.add_handler(
            MessageHandler(
                filters.TEXT & ~filters.COMMAND,
                self._default_message,
            )
        )

        logger.info("Bot de Telegram configurado")
        return self.application

    def run(self):
        """Inicia el bot en modo polling."""
        if not self.application:
            self.setup()

        logger.info("Iniciando bot de Telegram...")
        self.application.run_polling(allowed_updates=Update.ALL_TYPES)

    async def _show_categories(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Muestra las categorías guardadas del usuario."""
        telegram_id = update.effective_user.id
        user = self.user_repo.get_by_telegram_id(telegram_id)

        if not user or not user.get("start_here_completed"):
            await update.message.reply_text(
                "You haven't picked your categories yet.\n"
                "Use /start to get started."
            )
            return

        categories = user.get("selected_categories") or []
        categories_text = (
            "\n".join(f"• {escape_markdown(c, version=1)}" for c in categories)
            or "None"
        )

        await update.message.reply_text(
            f"📌 *Your categories*\n\n{categories_text}\n\n"
            f"_Use /start to choose again._",
            parse_mode="Markdown",
        )

    async def _help(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Muestra ayuda."""
        await update.message.reply_text(
            "🙏 *The Connection - Help*\n\n"
            "*Commands:*\n"
            "/start - Pick categories and join starter communities\n"
            "/categories - See your saved categories\n"
            "/cancel - Cancel the current setup\n"
            "/help - Show this help\n\n"
            "*How does it work?*\n"
            "1. Choose 3-5 categories that describe you\n"
            "2. We suggest communities that fit them\n"
            "3. Join a few to get started\n"
            "4. Private communities send your request to their admins",
            parse_mode="Markdown",
        )

    async def _default_message(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Responde a mensajes no reconocidos."""
        await update.message.reply_text(
            "🤔 I didn't understand that.\n\n"
            "Use /help to see the available commands."
        )
