# whatsapp.py - order summary text and the wa.me link the customer is sent to

import re
from urllib.parse import quote

WHATSAPP_BASE_URL = 'https://wa.me/'


def _money(value):
    return f'${value:.2f}'


def build_order_message(order, items):
    lines = [
        '🛒 *NUEVO PEDIDO*',
        '',
        f'📋 *ID Pedido:* {order.id[:8]}',
        '',
        '👤 *CLIENTE*',
        f'Nombre: {order.sender_fullname}',
        f'País: {order.sender_country}',
        f'Email: {order.sender_email}',
        f'Contacto: {order.sender_contact}',
        '',
        '📦 *RECEPTOR*',
        f'Nombre: {order.receiver_fullname}',
        f'CI: {order.receiver_id_number}',
        f'Contacto: {order.receiver_contact}',
        f'Dirección: {order.receiver_address}',
    ]
    if order.receiver_extras:
        lines.append(f'Adicionales: {order.receiver_extras}')
    lines += ['', '🛍️ *PRODUCTOS*']

    for item in items:
        lines += [
            f'• {item.product_name}',
            f'  Cantidad: {item.quantity}',
            f'  Precio: {_money(item.price)}',
            f'  Subtotal: {_money(item.price * item.quantity)}',
            '',
        ]

    lines += [
        f'💰 *TOTAL: {_money(order.total)}*',
        f'💳 Método de pago: {order.payment_method}',
    ]
    return '\n'.join(lines) + '\n'


def whatsapp_url(phone, message):
    digits = re.sub(r'[^0-9]', '', phone or '')
    return f'{WHATSAPP_BASE_URL}{digits}?text={quote(message, safe="")}'
