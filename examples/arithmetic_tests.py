from tallytest import test


@test
def add_returns_sum(t):
    t.assert_eq(2 + 2, 4)
    t.assert_eq(2 + 2, 5)


@test
def integer_division_floors(t):
    t.assert_eq_msg(7 // 2, 3, "7 // 2 gave %d", 7 // 2)
    t.assert_that(-7 // 2 == -4)
