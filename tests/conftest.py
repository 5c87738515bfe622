# tests/conftest.py
"""
Shared fixtures and function builders for the livevars test-suite.

Builders return ``(function, handles)`` where *handles* maps short names
to the blocks and values a test wants to assert on.
"""

import random
from types import SimpleNamespace

import pytest

from livevars.ir import Function


# ── Scenario builders ────────────────────────────────────────────

def build_straight_line():
    """``x = load p; y = add x, 1; store y -> q; ret``"""
    fn = Function("straight", ["p", "q"])
    p, q = fn.arguments
    entry = fn.add_block("entry")
    x = entry.add("load", p, name="x")
    y = entry.add("add", x, fn.const(1), name="y")
    store = entry.add("store", y, q)
    ret = entry.add("ret")
    return fn, SimpleNamespace(
        p=p, q=q, entry=entry, x=x, y=y, store=store, ret=ret,
    )


def build_diamond(join_reads_v=True):
    """``if c then A else B``; both jump to ``C``.

    ``A`` defines ``v``; ``C`` returns ``v`` when *join_reads_v*, otherwise
    it returns the argument ``w``.
    """
    fn = Function("diamond", ["c", "x", "w"])
    c, x, w = fn.arguments
    entry = fn.add_block("entry")
    a = fn.add_block("A")
    b = fn.add_block("B")
    join = fn.add_block("C")

    entry.add("br", c, a, b)
    v = a.add("add", x, fn.const(1), name="v")
    a.add("br", join)
    b.add("br", join)
    ret = join.add("ret", v if join_reads_v else w)

    fn.infer_edges()
    return fn, SimpleNamespace(
        c=c, x=x, w=w, v=v, entry=entry, A=a, B=b, C=join, ret=ret,
    )


def build_self_loop():
    """A single-block infinite loop reading and writing through ``slot``::

        entry: br L
        L:     x = load slot; y = add x, 1; store y -> slot; br L
    """
    fn = Function("spin", ["slot"])
    (slot,) = fn.arguments
    entry = fn.add_block("entry")
    loop = fn.add_block("L")
    entry.add("br", loop)
    x = loop.add("load", slot, name="x")
    y = loop.add("add", x, fn.const(1), name="y")
    store = loop.add("store", y, slot)
    br = loop.add("br", loop)
    fn.infer_edges()
    return fn, SimpleNamespace(
        slot=slot, entry=entry, L=loop, x=x, y=y, store=store, br=br,
    )


def build_counting_loop():
    """``for (i = 0; i < n; i++) acc += i; return acc`` in SSA form."""
    fn = Function("count", ["n"])
    (n,) = fn.arguments
    entry = fn.add_block("entry")
    header = fn.add_block("header")
    body = fn.add_block("body")
    exit_ = fn.add_block("exit")

    entry.add("br", header)
    i = header.add("phi", fn.const(0), entry, name="i")
    acc = header.add("phi", fn.const(0), entry, name="acc")
    cond = header.add("icmp", i, n, name="cond")
    header.add("br", cond, body, exit_)
    acc_next = body.add("add", acc, i, name="acc.next")
    i_next = body.add("add", i, fn.const(1), name="i.next")
    body.add("br", header)
    # Close the phis over the back edge.
    i.operands = i.operands + (i_next, body)
    acc.operands = acc.operands + (acc_next, body)
    exit_.add("ret", acc)

    fn.infer_edges()
    return fn, SimpleNamespace(
        n=n, entry=entry, header=header, body=body, exit=exit_,
        i=i, acc=acc, cond=cond, acc_next=acc_next, i_next=i_next,
    )


def build_random_function(seed, blocks=8, instructions=4, arguments=3):
    """A random, well-formed CFG (loops and unreachable blocks allowed)."""
    rng = random.Random(seed)
    fn = Function(f"random{seed}", [f"a{i}" for i in range(arguments)])
    bbs = [fn.add_block(f"bb{i}") for i in range(blocks)]
    pool = list(fn.arguments)
    opcodes = ["add", "mul", "icmp", "load", "getelementptr", "zext", "call"]

    for bb in bbs:
        for k in range(rng.randint(0, instructions)):
            if rng.random() < 0.2:
                bb.add("store", rng.choice(pool), rng.choice(pool))
                continue
            opcode = rng.choice(opcodes)
            operands = [rng.choice(pool) for _ in range(rng.randint(1, 2))]
            if rng.random() < 0.3:
                operands.append(fn.const(rng.randint(0, 9)))
            pool.append(bb.add(opcode, *operands, name=f"{bb.name}.{k}"))

        shape = rng.random()
        if shape < 0.2:
            bb.add("ret", rng.choice(pool))
        elif shape < 0.55:
            bb.add("br", rng.choice(bbs))
        else:
            bb.add("br", rng.choice(pool), rng.choice(bbs), rng.choice(bbs))

    fn.infer_edges()
    return fn


# ── JSON program documents ───────────────────────────────────────

STRAIGHT_LINE_DOC = {
    "functions": [
        {
            "name": "straight",
            "arguments": ["p", "q"],
            "blocks": [
                {
                    "name": "entry",
                    "instructions": [
                        {"name": "x", "opcode": "load", "operands": ["%p"]},
                        {"name": "y", "opcode": "add", "operands": ["%x", 1]},
                        {"opcode": "store", "operands": ["%y", "%q"]},
                        {"opcode": "ret"},
                    ],
                }
            ],
        }
    ]
}

DIAMOND_DOC = {
    "functions": [
        {
            "name": "diamond",
            "arguments": ["c", "x"],
            "blocks": [
                {"name": "entry", "instructions": [
                    {"opcode": "br", "operands": ["%c", "label %A", "label %B"]},
                ]},
                {"name": "A", "instructions": [
                    {"name": "v", "opcode": "add", "operands": ["%x", 1]},
                    {"opcode": "br", "operands": ["label %C"]},
                ]},
                {"name": "B", "instructions": [
                    {"opcode": "br", "operands": ["label %C"]},
                ]},
                {"name": "C", "instructions": [
                    {"opcode": "ret", "operands": ["%v"]},
                ]},
            ],
        },
        {
            "name": "empty",
            "blocks": [
                {"name": "entry", "instructions": [{"opcode": "ret"}]},
            ],
        },
    ]
}


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def straight_line():
    return build_straight_line()


@pytest.fixture
def diamond():
    return build_diamond()


@pytest.fixture
def self_loop():
    return build_self_loop()


@pytest.fixture
def counting_loop():
    return build_counting_loop()
