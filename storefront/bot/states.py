from aiogram.fsm.state import State, StatesGroup


class Checkout(StatesGroup):
    waiting_name = State()
    waiting_email = State()
    waiting_phone = State()
    waiting_address = State()
