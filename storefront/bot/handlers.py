import html
import logging
from typing import Iterable, List

import httpx
from aiogram import Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, ReplyKeyboardRemove

from storefront.bot.keyboards import main_kb, skip_kb
from storefront.bot.states import Checkout
from storefront.config import settings
from storefront.constants import ALL_CATEGORIES
from storefront.db.sqlite import SqliteStorage
from storefront.models import Product
from storefront.services.cart import CartManager
from storefront.services.catalog import filter_by_category, find_product, list_categories
from storefront.services.client import OrderRejected, StorefrontClient
from storefront.utils.formatters import money_with_currency
from storefront.utils.validators import is_valid_email

logger = logging.getLogger(__name__)

router = Router()


def _user_cart(message: Message, products: Iterable[Product] = ()) -> CartManager:
    storage = SqliteStorage(settings.storage_path, namespace=str(message.from_user.id))
    cart = CartManager(storage, products)
    cart.restore()
    return cart


def _arg(message: Message) -> str:
    parts = (message.text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def products_text(products: List[Product], category: str = ALL_CATEGORIES) -> str:
    if not products:
        return "No products available yet."

    shown = filter_by_category(products, category)
    if not shown:
        return f"No products in category <b>{html.escape(category)}</b>."

    lines = ["<b>Products:</b>"]
    for p in shown:
        lines.append(
            f"• <code>{html.escape(p.id)}</code> {html.escape(p.name)} — {money_with_currency(p.price)}"
        )
    categories = list_categories(products)
    if len(categories) > 1:
        lines.append("")
        lines.append("Categories: " + ", ".join(html.escape(c) for c in categories))
    lines.append("")
    lines.append("Add to cart: /add ID")
    return "\n".join(lines)


def product_text(product: Product, base_url: str = "") -> str:
    lines = [
        f"<b>{html.escape(product.name)}</b>",
        money_with_currency(product.price),
    ]
    if product.description:
        lines.append("")
        lines.append(html.escape(product.description))
    lines.append("")
    if product.category:
        lines.append(f"Category: {html.escape(product.category)}")
    lines.append(f"Image: {html.escape(base_url.rstrip('/') + product.image)}")
    lines.append("")
    lines.append(f"Add to cart: /add {html.escape(product.id)}")
    return "\n".join(lines)


def cart_text(cart: CartManager) -> str:
    if not cart.items:
        return "Your cart is empty"

    lines = ["<b>Cart:</b>"]
    for it in cart.items:
        lines.append(
            f"• <code>{html.escape(it.id)}</code> {html.escape(it.name)} × {it.quantity}"
            f" — {money_with_currency(it.price * it.quantity)}"
        )
    lines.append("")
    lines.append(f"<b>Total: {money_with_currency(cart.total())}</b>")
    lines.append("")
    lines.append("/inc ID · /dec ID · /remove ID · /checkout")
    return "\n".join(lines)


@router.message(Command("start"))
async def cmd_start(message: Message):
    await message.answer(
        f"Welcome to <b>{html.escape(settings.shop_name)}</b>!\nSee /products or /help.",
        reply_markup=main_kb(),
    )


@router.message(Command("help"))
async def cmd_help(message: Message):
    text = (
        f"<b>{html.escape(settings.shop_name)} — commands</b>\n\n"
        "/products [CATEGORY] — catalog\n"
        "/product ID — product details\n"
        "/add ID — add to cart\n"
        "/cart — show cart\n"
        "/inc ID, /dec ID — change quantity\n"
        "/remove ID — remove from cart\n"
        "/clear — empty cart\n"
        "/checkout — place the order\n"
        "/cancel — cancel checkout\n"
    )
    await message.answer(text)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext):
    await state.clear()
    await message.answer("Cancelled.", reply_markup=main_kb())


@router.message(Command("products"))
async def cmd_products(message: Message, api: StorefrontClient):
    try:
        products = await api.fetch_products()
    except httpx.HTTPError as e:
        logger.error("Error loading products: %s", e)
        await message.answer("Error loading products. Please try again later.")
        return
    await message.answer(products_text(products, _arg(message) or ALL_CATEGORIES))


@router.message(Command("product"))
async def cmd_product(message: Message, api: StorefrontClient):
    product_id = _arg(message)
    if not product_id:
        await message.answer("Format: /product ID")
        return

    try:
        products = await api.fetch_products()
    except httpx.HTTPError as e:
        logger.error("Error loading products: %s", e)
        await message.answer("Error loading products. Please try again later.")
        return

    product = find_product(products, product_id)
    if product is None:
        await message.answer("Product not found. See /products")
        return
    await message.answer(product_text(product, settings.api_url))


@router.message(Command("add"))
async def cmd_add(message: Message, api: StorefrontClient):
    product_id = _arg(message)
    if not product_id:
        await message.answer("Format: /add ID")
        return

    try:
        products = await api.fetch_products()
    except httpx.HTTPError as e:
        logger.error("Error loading products: %s", e)
        await message.answer("Error loading products. Please try again later.")
        return

    cart = _user_cart(message, products)
    if not cart.add(product_id):
        await message.answer("Product not found. See /products")
        return
    await message.answer(f"✅ Added. Items in cart: {cart.item_count()}")


@router.message(Command("cart"))
async def cmd_cart(message: Message):
    await message.answer(cart_text(_user_cart(message)))


@router.message(Command("inc", "dec"))
async def cmd_change_qty(message: Message):
    product_id = _arg(message)
    if not product_id:
        await message.answer("Format: /inc ID or /dec ID")
        return

    delta = 1 if (message.text or "").startswith("/inc") else -1
    cart = _user_cart(message)
    cart.update_quantity(product_id, delta)
    await message.answer(cart_text(cart))


@router.message(Command("remove"))
async def cmd_remove(message: Message):
    product_id = _arg(message)
    if not product_id:
        await message.answer("Format: /remove ID")
        return

    cart = _user_cart(message)
    cart.remove(product_id)
    await message.answer(cart_text(cart))


@router.message(Command("clear"))
async def cmd_clear(message: Message):
    _user_cart(message).clear()
    await message.answer("Your cart is empty")


# ---------------- checkout ----------------

@router.message(Command("checkout"))
async def cmd_checkout(message: Message, state: FSMContext):
    if not _user_cart(message).items:
        await message.answer("Your cart is empty!")
        return

    await state.clear()
    await state.set_state(Checkout.waiting_name)
    await message.answer("1/4) Your name?\nCancel: /cancel", reply_markup=ReplyKeyboardRemove())


@router.message(Checkout.waiting_name)
async def checkout_name(message: Message, state: FSMContext):
    name = (message.text or "").strip()
    if not name or name.startswith("/"):
        await message.answer("Please enter your name. Cancel: /cancel")
        return

    await state.update_data(customerName=name)
    await state.set_state(Checkout.waiting_email)
    await message.answer("2/4) Your email?\nCancel: /cancel")


@router.message(Checkout.waiting_email)
async def checkout_email(message: Message, state: FSMContext):
    email = (message.text or "").strip().lower()
    if not is_valid_email(email):
        await message.answer("This does not look like an email. Try again or /cancel")
        return

    await state.update_data(customerEmail=email)
    await state.set_state(Checkout.waiting_phone)
    await message.answer("3/4) Phone number, or '-' to skip.", reply_markup=skip_kb())


@router.message(Checkout.waiting_phone)
async def checkout_phone(message: Message, state: FSMContext):
    phone = (message.text or "").strip()
    await state.update_data(customerPhone="" if phone == "-" else phone)
    await state.set_state(Checkout.waiting_address)
    await message.answer("4/4) Delivery address, or '-' to skip.", reply_markup=skip_kb())


@router.message(Checkout.waiting_address)
async def checkout_address(message: Message, state: FSMContext, api: StorefrontClient):
    address = (message.text or "").strip()
    await state.update_data(customerAddress="" if address == "-" else address)

    customer = await state.get_data()
    await state.clear()

    cart = _user_cart(message)
    if not cart.items:
        await message.answer("Your cart is empty!", reply_markup=main_kb())
        return

    try:
        await api.submit_order(cart.checkout_payload(customer))
    except OrderRejected as e:
        await message.answer(f"❌ {html.escape(e.message)}", reply_markup=main_kb())
        return
    except httpx.HTTPError as e:
        logger.error("Error submitting order: %s", e)
        await message.answer("Failed to submit order. Please try again.", reply_markup=main_kb())
        return

    cart.complete_checkout()
    await message.answer(
        "✅ Thank you! Your order has been received. Check your email for the confirmation.",
        reply_markup=main_kb(),
    )
