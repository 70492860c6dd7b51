"""Sample script demonstrating programmatic usage."""
from recipe_sim.actions import Recipe, SendTokenAction, SubInputsAction, SumInputsAction, UnwrapEthAction, WrapEthAction
from recipe_sim.constants import DEV_ACCOUNTS, ETH_ADDR, WEI_PER_ETHER, WETH_ADDRESS
from recipe_sim.errors import ArithmeticUnderflow
from recipe_sim.harness import balance_of, build_fixture


def demo_wrap_sum_and_send():
    """Wrap ETH, send the sum of two inputs as WETH, then show an atomic revert."""
    fx = build_fixture()
    recipient = DEV_ACCOUNTS[1]

    recipe = Recipe(
        "wrap-sum-send",
        [
            WrapEthAction(10 * WEI_PER_ETHER),
            SumInputsAction(2 * WEI_PER_ETHER, 7 * WEI_PER_ETHER),
            SendTokenAction(WETH_ADDRESS, recipient, "$2"),
            UnwrapEthAction(WEI_PER_ETHER, fx.sender),
        ],
    )
    receipt = fx.proxy.execute_recipe(recipe, value=10 * WEI_PER_ETHER)
    print(f"Recipe mined in block {receipt.block_number}, outputs {receipt.return_value}")
    print(f"Recipient WETH: {balance_of(fx.node, WETH_ADDRESS, recipient)}")
    print(f"Proxy WETH: {balance_of(fx.node, WETH_ADDRESS, fx.proxy.address)}")

    before = balance_of(fx.node, ETH_ADDR, fx.sender)
    try:
        fx.proxy.execute_recipe(Recipe("underflow", [WrapEthAction(WEI_PER_ETHER), SubInputsAction(1, 5)]),
                                value=WEI_PER_ETHER)
    except ArithmeticUnderflow as exc:
        print(f"Reverted: {exc.reason}")
    assert balance_of(fx.node, ETH_ADDR, fx.sender) == before


if __name__ == "__main__":
    demo_wrap_sum_and_send()
