import pytest

from assembler import assemble
from errors import (
    CallStackOverflow,
    CallStackUnderflow,
    OperandTypeError,
    StepLimitExceeded,
    UninitializedFlag,
)
from io_bridge import BufferedIO
from vm import FLAG_EQUAL, FLAG_GREATER, FLAG_LESS, FLAG_UNSET, VM, run_source

BRANCH = """
push {a}
push {b}
cmp
jgt @big
push 0
jmp @end
big:
push 1
end:
print
"""


def run(src, **kwargs):
    io = BufferedIO()
    vm = run_source(src, io=io, **kwargs)
    return vm, io


def test_branch_not_taken_when_less():
    vm, io = run(BRANCH.format(a=3, b=5))
    assert vm.flag == FLAG_LESS
    assert io.text == "0\n"


def test_branch_taken_when_greater():
    vm, io = run(BRANCH.format(a=5, b=3))
    assert vm.flag == FLAG_GREATER
    assert io.text == "1\n"


def test_cmp_consumes_both_values():
    vm, _ = run("push 4\npush 4\ncmp\n")
    assert vm.stack == []
    assert vm.flag == FLAG_EQUAL


def test_cmp_with_literal_keeps_top():
    vm, _ = run("push 9\ncmp 10\n")
    assert vm.stack == [9]
    assert vm.flag == FLAG_LESS


def test_scmp_leaves_stack_untouched():
    vm, _ = run('push "b"\npush "a"\nscmp\n')
    assert vm.stack == ["b", "a"]
    assert vm.flag == FLAG_LESS


def test_scmp_compares_top_against_second():
    vm, _ = run('push 1\npush 2\nscmp\njgt @yes\npush "no"\nexit\nyes:\npush "yes"\n')
    assert vm.stack == [1, 2, "yes"]
    vm, _ = run('push 2\npush 1\nscmp\njgt @yes\npush "no"\nexit\nyes:\npush "yes"\n')
    assert vm.stack == [2, 1, "no"]


def test_cmp_mixed_numbers_and_text():
    vm, _ = run("push 2\npush 2.0\ncmp\n")
    assert vm.flag == FLAG_EQUAL
    with pytest.raises(OperandTypeError):
        run('push 2\npush "2"\ncmp\n')


@pytest.mark.parametrize(
    "a, b, taken",
    [
        (1, 1, {"jeq", "jge", "jle", "jz"}),
        (2, 1, {"jne", "jgt", "jge", "jnz"}),
        (1, 2, {"jne", "jlt", "jle", "jnz", "jneg"}),
    ],
)
def test_conditional_jump_table(a, b, taken):
    for op in ("jeq", "jne", "jgt", "jlt", "jge", "jle", "jz", "jnz", "jneg"):
        src = f"push {a}\npush {b}\ncmp\n{op} @yes\npush \"no\"\nexit\nyes:\npush \"yes\"\n"
        vm, _ = run(src)
        expected = "yes" if op in taken else "no"
        assert vm.stack == [expected], op


def test_conditional_jump_before_cmp():
    with pytest.raises(UninitializedFlag) as exc:
        run("jeq @x\nx:\n")
    assert exc.value.ip == 0


def test_jmp_ignores_flag():
    vm, _ = run("jmp @x\npush 1\nx:\npush 2\n")
    assert vm.flag == FLAG_UNSET
    assert vm.stack == [2]


def test_loop_sums_one_to_ten():
    src = """
    push 0          ; accumulator
    push 10         ; counter
    loop:
    dup
    store 0         ; heap[0] = counter
    add             ; acc += counter
    load 0
    push 1
    sub
    cmp 0
    jgt @loop
    pop
    print
    """
    vm, io = run(src)
    assert io.text == "55\n"
    assert vm.stack == []


def test_call_returns_to_next_instruction():
    src = """
    push 2
    call @double
    push "after"
    exit
    double:
    push 2
    mul
    ret
    """
    vm, _ = run(src)
    assert vm.stack == [4, "after"]
    assert vm.call_stack == []


def test_nested_calls():
    src = """
    call @a
    exit 5
    a:
    push "a"
    call @b
    ret
    b:
    push "b"
    ret
    """
    vm, _ = run(src)
    assert vm.stack == ["a", "b"]
    assert vm.exit_status == 5


def test_ret_with_empty_call_stack():
    with pytest.raises(CallStackUnderflow):
        run("push 1\nret\n")


def test_unbounded_recursion_overflows():
    vm = VM(assemble("f:\ncall @f\n"), io=BufferedIO())
    vm.MAX_CALL_DEPTH = 50
    with pytest.raises(CallStackOverflow):
        vm.run()
    assert len(vm.call_stack) == 50


def test_exit_status():
    vm, _ = run("exit\npush 1\n")
    assert vm.exit_status == 0
    assert vm.stack == []
    vm, _ = run("exit 42\n")
    assert vm.exit_status == 42
    vm, _ = run("jmp @end\npush 1\nend:\n")
    assert vm.exit_status == 0
    assert vm.stack == []


def test_step_limit():
    with pytest.raises(StepLimitExceeded) as exc:
        run("top:\njmp @top\n", max_steps=100)
    assert exc.value.ip == 0


def test_trace_mode_records_each_step():
    io = BufferedIO()
    run_source("push 1\npop\n", io=io, trace=True)
    assert io.traces == [
        "TRACE ip=0000 push 1 stack=0",
        "TRACE ip=0001 pop stack=1",
    ]
