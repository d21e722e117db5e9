"""
Handlers para el bot de Telegram.

Implementa el flujo "Start Here" (categorías + starter communities)
y la revisión de solicitudes de ingreso por parte de los owners.
"""

from typing import Optional

import structlog
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest
from telegram.ext import ContextTypes, ConversationHandler
from telegram.helpers import escape_markdown

from theconnection.config import AVAILABLE_CATEGORIES, Settings, get_settings
from theconnection.database import CommunityRepository, UserRepository
from theconnection.matching import CommunityMatcher
from theconnection.membership import MembershipService
from theconnection.models import MemberRole, MembershipResult, MembershipResultCode

logger = structlog.get_logger()

# Estados de la conversación
(
    WAITING_CATEGORIES,
    WAITING_COMMUNITIES,
) = range(2)

ADMIN_WELCOME = (
    "👑 *You're the Community Admin!*\n\n"
    "As the first member of *{name}*, you're now the Admin. Here's what that means:\n\n"
    "• You can manage members and assign moderators\n"
    "• You control community settings and privacy\n"
    "• You can remove inappropriate content\n\n"
    "_Important: update your community's location in Settings so people nearby "
    "can discover and join what God is building through this community!_"
)

MODERATOR_WELCOME = (
    "🛡️ *You're Now a Moderator!*\n\n"
    "You've been made a moderator of *{name}*. Here's your role:\n\n"
    "• Help maintain a positive, Christ-centered environment\n"
    "• Review and remove inappropriate content\n"
    "• Welcome new members and encourage participation\n"
    "• Support the Admin in growing the community"
)


def _md(text: str) -> str:
    return escape_markdown(text or "", version=1)


class StartHereHandler:
    """
    Maneja el onboarding "Start Here".

    Flujo:
    1. Elegir entre min_categories y max_categories categorías
    2. Ver las starter communities y unirse/salir
    3. Terminar: se guardan las categorías y el flag de completado

    Las sugerencias se recalculan completas en cada cambio de categorías.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        user_repo: Optional[UserRepository] = None,
        community_repo: Optional[CommunityRepository] = None,
        membership: Optional[MembershipService] = None,
        matcher: Optional[CommunityMatcher] = None,
    ):
        self.settings = settings or get_settings()
        self.user_repo = user_repo or UserRepository()
        self.community_repo = community_repo or CommunityRepository()
        self.membership = membership or MembershipService(
            community_repo=self.community_repo,
            user_repo=self.user_repo,
        )
        self.matcher = matcher or CommunityMatcher(self.settings)
        self._temp_data: dict = {}  # telegram_id -> data temporal
        self._in_flight: set[tuple[int, int]] = set()  # (telegram_id, community_id)

    def _get_temp_data(self, telegram_id: int) -> dict:
        """Obtiene o inicializa datos temporales para un usuario."""
        if telegram_id not in self._temp_data:
            self._temp_data[telegram_id] = {
                "user_id": None,
                "categories": [],
                "communities": [],
                "joined": set(),
                "suggestions": [],
            }
        return self._temp_data[telegram_id]

    def _refresh_suggestions(self, data: dict) -> None:
        data["suggestions"] = self.matcher.rank(
            data["communities"], data["categories"]
        )

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Comando /start - inicia Start Here (siempre con selección vacía)."""
        user = update.effective_user
        telegram_id = user.id

        self._temp_data.pop(telegram_id, None)
        data = self._get_temp_data(telegram_id)

        try:
            db_user = self.user_repo.get_or_create(telegram_id, user.username)
            data["user_id"] = db_user.get("id")
            data["communities"] = self.community_repo.get_all()
            if data["user_id"]:
                data["joined"] = self.membership.joined_community_ids(data["user_id"])
        except Exception as e:
            logger.error(
                "Error cargando comunidades",
                telegram_id=telegram_id,
                error=str(e),
            )
            self._temp_data.pop(telegram_id, None)
            await update.message.reply_text(
                "❌ We couldn't load communities right now.\n"
                "Please try /start again in a moment."
            )
            return ConversationHandler.END

        self._refresh_suggestions(data)

        await update.message.reply_text(
            f"Welcome to The Connection, {_md(user.first_name)}! 🙏\n\n"
            "Let's find a few communities where you'll find accountability, "
            "encouragement, and opportunities to grow in faith together.",
            parse_mode="Markdown",
        )

        text, markup = self._render_categories(data)
        await update.message.reply_text(text, reply_markup=markup, parse_mode="Markdown")
        return WAITING_CATEGORIES

    def _render_categories(self, data: dict) -> tuple[str, InlineKeyboardMarkup]:
        """Paso 1: Categorías."""
        selected = data["categories"]
        keyboard = []
        row = []

        for index, category in enumerate(AVAILABLE_CATEGORIES):
            emoji = "✅ " if category in selected else ""
            row.append(
                InlineKeyboardButton(f"{emoji}{category}", callback_data=f"cat_{index}")
            )
            if len(row) == 2:
                keyboard.append(row)
                row = []

        if row:
            keyboard.append(row)

        keyboard.append([InlineKeyboardButton("➡️ Continue", callback_data="cat_done")])

        minimum = self.settings.min_categories
        maximum = self.settings.max_categories
        matches = sum(1 for m in data["suggestions"] if not m.is_backfill)
        match_text = (
            f"\n🔎 {matches} starter communit{'y' if matches == 1 else 'ies'} "
            "match your picks"
            if selected
            else ""
        )

        text = (
            "📋 *Step 1 of 2 - Choose a few categories*\n\n"
            f"Select {minimum}-{maximum} categories that describe you.\n\n"
            f"_{len(selected)} of {minimum} minimum selected_"
            f"{match_text}"
        )
        return text, InlineKeyboardMarkup(keyboard)

    async def handle_category(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Procesa selección de categorías."""
        query = update.callback_query
        telegram_id = query.from_user.id
        action = query.data.replace("cat_", "")

        data = self._get_temp_data(telegram_id)
        selected = data["categories"]

        if action == "done":
            if len(selected) < self.settings.min_categories:
                await query.answer(
                    f"Please select at least {self.settings.min_categories} "
                    "categories to continue.",
                    show_alert=True,
                )
                return WAITING_CATEGORIES

            await query.answer()
            text, markup = self._render_communities(data)
            await query.edit_message_text(text, reply_markup=markup, parse_mode="Markdown")
            return WAITING_COMMUNITIES

        try:
            category = AVAILABLE_CATEGORIES[int(action)]
        except (ValueError, IndexError):
            await query.answer()
            return WAITING_CATEGORIES

        # Toggle categoría
        if category in selected:
            selected.remove(category)
        elif len(selected) >= self.settings.max_categories:
            await query.answer(
                f"You can select up to {self.settings.max_categories} categories.",
                show_alert=True,
            )
            return WAITING_CATEGORIES
        else:
            selected.append(category)

        await query.answer()
        self._refresh_suggestions(data)

        text, markup = self._render_categories(data)
        await query.edit_message_text(text, reply_markup=markup, parse_mode="Markdown")
        return WAITING_CATEGORIES

    def _render_communities(self, data: dict) -> tuple[str, InlineKeyboardMarkup]:
        """Paso 2: Starter communities."""
        suggestions = data["suggestions"]
        joined = data["joined"]
        keyboard = []

        if suggestions:
            lines = []
            for match in suggestions:
                community = match.community
                description = community.description or ""
                if len(description) > 100:
                    description = description[:100] + "..."
                lines.append(
                    f"*{_md(community.name)}* · {community.popularity} members\n"
                    f"_{_md(description)}_"
                )
                label = community.name[:30]
                if community.id in joined:
                    button = f"✅ Joined · {label}"
                else:
                    button = f"➕ Join · {label}"
                keyboard.append([
                    InlineKeyboardButton(button, callback_data=f"comm_{community.id}")
                ])
            body = (
                "Based on your categories, here are communities you might enjoy. "
                "You can always discover more later.\n\n" + "\n\n".join(lines)
            )
        else:
            body = (
                "🌱 No communities match yet.\n\n"
                "Be the first! Start a community in the app and invite "
                "believers near you."
            )

        keyboard.append([
            InlineKeyboardButton("⬅️ Back", callback_data="comm_back"),
            InlineKeyboardButton("✔️ Finish", callback_data="comm_finish"),
        ])

        count = len(joined)
        text = (
            "📋 *Step 2 of 2 - Starter communities*\n\n"
            f"{body}\n\n"
            f"👥 {count} {'community' if count == 1 else 'communities'} joined"
        )
        return text, InlineKeyboardMarkup(keyboard)

    async def handle_community(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Procesa join/leave, volver y terminar."""
        query = update.callback_query
        telegram_id = query.from_user.id
        action = query.data.replace("comm_", "")
        data = self._get_temp_data(telegram_id)

        if action == "back":
            await query.answer()
            text, markup = self._render_categories(data)
            await query.edit_message_text(text, reply_markup=markup, parse_mode="Markdown")
            return WAITING_CATEGORIES

        if action == "finish":
            return await self._finish(query, data)

        try:
            community_id = int(action)
        except ValueError:
            await query.answer()
            return WAITING_COMMUNITIES

        # Evitar doble tap mientras la operación anterior sigue en curso
        key = (telegram_id, community_id)
        if key in self._in_flight:
            await query.answer()
            return WAITING_COMMUNITIES

        self._in_flight.add(key)
        try:
            if community_id in data["joined"]:
                await self._leave(query, data, community_id)
            else:
                result = self.membership.request_join(community_id, data["user_id"])
                await self._handle_join_result(query, context, data, community_id, result)
        finally:
            self._in_flight.discard(key)

        text, markup = self._render_communities(data)
        try:
            await query.edit_message_text(text, reply_markup=markup, parse_mode="Markdown")
        except BadRequest as e:
            # Sin cambios visibles (ej: solicitud ya pendiente)
            if "not modified" not in str(e).lower():
                raise
        return WAITING_COMMUNITIES

    async def _leave(self, query, data: dict, community_id: int) -> None:
        result = self.membership.leave_community(community_id, data["user_id"])

        if not result.success:
            if result.status == MembershipResultCode.NOT_A_MEMBER:
                data["joined"].discard(community_id)
                await query.answer()
                return
            await query.answer(
                result.reason or "Failed to update membership", show_alert=True
            )
            return

        data["joined"].discard(community_id)
        if result.community_deleted:
            data["communities"] = [
                c for c in data["communities"] if c.id != community_id
            ]
            self._refresh_suggestions(data)
        await query.answer("You left the community")

    async def _handle_join_result(
        self,
        query,
        context: ContextTypes.DEFAULT_TYPE,
        data: dict,
        community_id: int,
        result: MembershipResult,
    ) -> None:
        community = next(
            (c for c in data["communities"] if c.id == community_id), None
        )
        name = community.name if community else "this community"

        if result.status == MembershipResultCode.ALREADY_MEMBER:
            data["joined"].add(community_id)
            await query.answer("You're already a member")
            return

        if result.status == MembershipResultCode.ALREADY_PENDING:
            await query.answer(
                "Your join request is still waiting for approval.", show_alert=True
            )
            return

        if not result.success:
            await query.answer(
                result.reason or "Failed to update membership", show_alert=True
            )
            return

        if result.is_pending:
            await query.answer(
                "Request Sent: your join request has been sent to the community admins.",
                show_alert=True,
            )
            await self._notify_owners(context, community_id, name, query.from_user)
            return

        data["joined"].add(community_id)
        await query.answer("Joined ✅")

        if result.role == MemberRole.OWNER:
            await query.message.reply_text(
                ADMIN_WELCOME.format(name=_md(name)), parse_mode="Markdown"
            )
        elif result.role == MemberRole.MODERATOR:
            await query.message.reply_text(
                MODERATOR_WELCOME.format(name=_md(name)), parse_mode="Markdown"
            )

    async def _notify_owners(
        self,
        context: ContextTypes.DEFAULT_TYPE,
        community_id: int,
        community_name: str,
        requester,
    ) -> None:
        """Envía la solicitud de ingreso a los owners de la comunidad."""
        data = self._get_temp_data(requester.id)
        user_id = data["user_id"]
        who = requester.first_name or requester.username or "Someone"

        for owner in self.membership.owners_of(community_id):
            try:
                owner_user = self.user_repo.get_by_id(owner.user_id)
                if not owner_user or not owner_user.get("telegram_id"):
                    continue

                keyboard = [[
                    InlineKeyboardButton(
                        "✅ Approve", callback_data=f"approve_{community_id}_{user_id}"
                    ),
                    InlineKeyboardButton(
                        "❌ Deny", callback_data=f"deny_{community_id}_{user_id}"
                    ),
                ]]
                await context.bot.send_message(
                    chat_id=owner_user["telegram_id"],
                    text=(
                        "📨 *New Join Request*\n\n"
                        f"{_md(who)} wants to join *{_md(community_name)}*"
                    ),
                    parse_mode="Markdown",
                    reply_markup=InlineKeyboardMarkup(keyboard),
                )
            except Exception as e:
                logger.error(
                    "Error notificando solicitud al owner",
                    community_id=community_id,
                    owner_id=owner.user_id,
                    error=str(e),
                )

    async def _finish(self, query, data: dict):
        """Guarda la selección y termina Start Here."""
        telegram_id = query.from_user.id
        categories = list(data["categories"])

        if len(categories) < self.settings.min_categories:
            await query.answer(
                f"Please select at least {self.settings.min_categories} "
                "categories to continue.",
                show_alert=True,
            )
            return WAITING_COMMUNITIES

        try:
            self.user_repo.save_selected_categories(telegram_id, categories)
            self.user_repo.set_start_here_completed(telegram_id)
        except Exception as e:
            logger.error(
                "Error guardando Start Here",
                telegram_id=telegram_id,
                error=str(e),
            )
            await query.answer(
                "Something went wrong. Please try again.", show_alert=True
            )
            return WAITING_COMMUNITIES

        await query.answer()
        joined = len(data["joined"])
        self._temp_data.pop(telegram_id, None)

        await query.edit_message_text(
            "🎉 *You're all set!*\n\n"
            f"📌 Categories: {_md(', '.join(categories))}\n"
            f"👥 Communities joined: {joined}\n\n"
            "_Use /categories to see your picks or /start to choose again._",
            parse_mode="Markdown",
        )

        logger.info(
            "Start Here completado",
            telegram_id=telegram_id,
            categories=len(categories),
            joined=joined,
        )
        return ConversationHandler.END

    async def cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Cancela Start Here."""
        telegram_id = update.effective_user.id
        self._temp_data.pop(telegram_id, None)

        await update.message.reply_text(
            "❌ Setup cancelled.\n"
            "You can start again with /start whenever you like."
        )
        return ConversationHandler.END


class JoinRequestHandler:
    """Maneja la aprobación/rechazo de solicitudes por parte de owners y moderadores."""

    def __init__(
        self,
        user_repo: Optional[UserRepository] = None,
        community_repo: Optional[CommunityRepository] = None,
        membership: Optional[MembershipService] = None,
    ):
        self.user_repo = user_repo or UserRepository()
        self.community_repo = community_repo or CommunityRepository()
        self.membership = membership or MembershipService(
            community_repo=self.community_repo,
            user_repo=self.user_repo,
        )

    async def handle_review(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Procesa Approve / Deny."""
        query = update.callback_query

        try:
            action, community_raw, user_raw = query.data.split("_")
            community_id = int(community_raw)
            target_user_id = int(user_raw)
        except ValueError:
            await query.answer()
            return

        try:
            actor = self.user_repo.get_by_telegram_id(query.from_user.id)
            if not actor:
                await query.answer("Use /start first.", show_alert=True)
                return

            if action == "approve":
                result = self.membership.approve_request(
                    community_id, target_user_id, actor["id"]
                )
            else:
                result = self.membership.deny_request(
                    community_id, target_user_id, actor["id"]
                )
        except Exception as e:
            logger.error(
                "Error revisando solicitud",
                community_id=community_id,
                user_id=target_user_id,
                telegram_id=query.from_user.id,
                error=str(e),
            )
            await query.answer(
                "Something went wrong. Please try again.", show_alert=True
            )
            return

        if not result.success:
            await query.answer(result.reason, show_alert=True)
            return

        approved = action == "approve"
        await query.answer("✅ Approved" if approved else "Request denied")
        await query.edit_message_reply_markup(
            reply_markup=InlineKeyboardMarkup([[
                InlineKeyboardButton(
                    "✅ Approved" if approved else "❌ Denied", callback_data="noop"
                )
            ]])
        )

        await self._notify_requester(context, community_id, target_user_id, approved)

        logger.info(
            "Solicitud revisada",
            community_id=community_id,
            user_id=target_user_id,
            approved=approved,
        )

    async def _notify_requester(
        self,
        context: ContextTypes.DEFAULT_TYPE,
        community_id: int,
        user_id: int,
        approved: bool,
    ) -> None:
        try:
            requester = self.user_repo.get_by_id(user_id)
            if not requester or not requester.get("telegram_id"):
                return
            community = self.community_repo.get_by_id(community_id)
            name = _md(community.name) if community else "the community"

            if approved:
                text = f"🎉 Your request to join *{name}* was approved. Welcome!"
            else:
                text = f"Your request to join *{name}* was not approved this time."

            await context.bot.send_message(
                chat_id=requester["telegram_id"],
                text=text,
                parse_mode="Markdown",
            )
        except Exception as e:
            logger.error(
                "Error notificando al solicitante",
                community_id=community_id,
                user_id=user_id,
                error=str(e),
            )

    async def handle_noop(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Callback que no hace nada (para botones deshabilitados)."""
        query = update.callback_query
        await query.answer()
