import pytest

import ledger
from models import StockMovement, MOVEMENT_IN, MOVEMENT_OUT


def test_balance_starts_at_zero(ctx):
    assert ledger.current_balance('Arroz') == 0


def test_entrada_adds_and_salida_subtracts(ctx):
    first = ledger.record_movement('Arroz', MOVEMENT_IN, 10)
    assert (first.prior_balance, first.new_balance) == (0, 10)

    second = ledger.record_movement('Arroz', MOVEMENT_OUT, 3, note='Pedido #1')
    assert (second.prior_balance, second.new_balance) == (10, 7)
    assert second.note == 'Pedido #1'
    assert ledger.current_balance('Arroz') == 7


def test_balance_can_go_negative(ctx):
    ledger.record_movement('Aceite', MOVEMENT_IN, 1)
    movement = ledger.record_movement('Aceite', MOVEMENT_OUT, 4)
    assert movement.new_balance == -3


def test_products_have_separate_balances(ctx):
    ledger.record_movement('Arroz', MOVEMENT_IN, 5)
    ledger.record_movement('Aceite', MOVEMENT_IN, 2)
    ledger.record_movement('Arroz', MOVEMENT_OUT, 1)
    assert ledger.stock_snapshot() == {'Arroz': 4, 'Aceite': 2}


@pytest.mark.parametrize('movement_type, quantity', [
    ('ajuste', 1),
    (MOVEMENT_IN, 0),
    (MOVEMENT_IN, -2),
    (MOVEMENT_IN, 'many'),
])
def test_rejects_bad_movements(ctx, movement_type, quantity):
    with pytest.raises(ledger.LedgerError):
        ledger.record_movement('Arroz', movement_type, quantity)
    assert StockMovement.query.count() == 0


def test_list_is_newest_first(ctx):
    ledger.record_movement('Arroz', MOVEMENT_IN, 5)
    ledger.record_movement('Arroz', MOVEMENT_OUT, 2)
    movements = ledger.list_movements()
    assert [m.movement_type for m in movements] == [MOVEMENT_OUT, MOVEMENT_IN]


@pytest.mark.parametrize('quantity', [2.5, '2.5', 'NaN', 'Infinity', None])
def test_quantities_are_whole_units(ctx, quantity):
    with pytest.raises(ledger.LedgerError):
        ledger.record_movement('Arroz', MOVEMENT_IN, quantity)


def test_whole_number_strings_are_accepted(ctx):
    assert ledger.record_movement('Arroz', MOVEMENT_IN, ' 3 ').new_balance == 3
    assert ledger.record_movement('Arroz', MOVEMENT_IN, 2.0).new_balance == 5
