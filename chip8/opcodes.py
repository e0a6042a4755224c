"""Opcode decoding, program-counter effects and the dispatch table."""
from collections import namedtuple

# raw 16-bit opcode plus its nibbles (n0, n1, n2, n3) and operand fields
Opcode = namedtuple("Opcode", "raw nibbles nnn kk x y n")

# what a handler wants done with the program counter
PcEffect = namedtuple("PcEffect", "kind addr")

NEXT = PcEffect("next", None)
SKIP = PcEffect("skip", None)


def jump(addr):
    return PcEffect("jump", addr)


def skip_if(condition):
    return SKIP if condition else NEXT


def decode(raw):
    nibbles = ((raw >> 12) & 0xF, (raw >> 8) & 0xF, (raw >> 4) & 0xF, raw & 0xF)
    return Opcode(
        raw=raw,
        nibbles=nibbles,
        nnn=raw & 0x0FFF,
        kk=raw & 0x00FF,
        x=nibbles[1],
        y=nibbles[2],
        n=nibbles[3],
    )


# dispatch table: (mask, pattern, handler, mnemonic)
# first match wins, so 00E0/00EE sit ahead of the 0nnn catch-all
OPCODE_TABLE = [
    (0xFFFF, 0x00E0, "op_CLS", "CLS"),
    (0xFFFF, 0x00EE, "op_RET", "RET"),
    (0xF000, 0x0000, "op_SYS", "SYS addr"),

    (0xF000, 0x1000, "op_JP", "JP addr"),
    (0xF000, 0x2000, "op_CALL", "CALL addr"),
    (0xF000, 0x3000, "op_SE_Vx_kk", "SE Vx, byte"),
    (0xF000, 0x4000, "op_SNE_Vx_kk", "SNE Vx, byte"),
    (0xF00F, 0x5000, "op_SE_Vx_Vy", "SE Vx, Vy"),
    (0xF000, 0x6000, "op_LD_Vx_kk", "LD Vx, byte"),
    (0xF000, 0x7000, "op_ADD_Vx_kk", "ADD Vx, byte"),

    (0xF00F, 0x8000, "op_LD_Vx_Vy", "LD Vx, Vy"),
    (0xF00F, 0x8001, "op_OR", "OR Vx, Vy"),
    (0xF00F, 0x8002, "op_AND", "AND Vx, Vy"),
    (0xF00F, 0x8003, "op_XOR", "XOR Vx, Vy"),
    (0xF00F, 0x8004, "op_ADD", "ADD Vx, Vy"),
    (0xF00F, 0x8005, "op_SUB", "SUB Vx, Vy"),
    (0xF00F, 0x8006, "op_SHR", "SHR Vx"),
    (0xF00F, 0x8007, "op_SUBN", "SUBN Vx, Vy"),
    (0xF00F, 0x800E, "op_SHL", "SHL Vx"),

    (0xF00F, 0x9000, "op_SNE_Vx_Vy", "SNE Vx, Vy"),
    (0xF000, 0xA000, "op_LD_I", "LD I, addr"),
    (0xF000, 0xB000, "op_JP_V0", "JP V0, addr"),
    (0xF000, 0xC000, "op_RND", "RND Vx, byte"),
    (0xF000, 0xD000, "op_DRW", "DRW Vx, Vy, n"),

    (0xF0FF, 0xE09E, "op_SKP", "SKP Vx"),
    (0xF0FF, 0xE0A1, "op_SKNP", "SKNP Vx"),

    (0xF0FF, 0xF007, "op_LD_Vx_DT", "LD Vx, DT"),
    (0xF0FF, 0xF00A, "op_WAITKEY", "LD Vx, K"),
    (0xF0FF, 0xF015, "op_LD_DT_Vx", "LD DT, Vx"),
    (0xF0FF, 0xF018, "op_LD_ST_Vx", "LD ST, Vx"),
    (0xF0FF, 0xF01E, "op_ADD_I_Vx", "ADD I, Vx"),
    (0xF0FF, 0xF029, "op_FONT", "LD F, Vx"),
    (0xF0FF, 0xF033, "op_BCD", "LD B, Vx"),
    (0xF0FF, 0xF055, "op_STORE", "LD [I], Vx"),
    (0xF0FF, 0xF065, "op_LOAD", "LD Vx, [I]"),
]


def lookup(raw):
    """Handler name for raw, or None if no table entry matches."""
    for mask, pattern, handler, _ in OPCODE_TABLE:
        if (raw & mask) == pattern:
            return handler
    return None


def mnemonic(raw):
    for mask, pattern, _, name in OPCODE_TABLE:
        if (raw & mask) == pattern:
            return name
    return "???"
