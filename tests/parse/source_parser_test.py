import unittest

from keymap_viewer.parse import (
    LayersNotFoundError,
    MalformedKeymapError,
    SourceKeymapParser,
    UnbalancedBracketError,
)

NESTED_TOKENS = [
    "KC_ESC", "KC_1", "KC_2", "KC_3", "KC_4", "KC_5", "KC_6", "KC_7", "KC_8", "KC_9", "KC_0", "KC_BSPC",
    "KC_TAB", "KC_Q", "KC_W", "KC_E", "KC_R", "KC_T", "KC_Y", "KC_U", "KC_I", "KC_O", "KC_P", "KC_DEL",
    "MT(MOD_LCTL | MOD_LSFT, KC_ESC)", "KC_A", "KC_S", "KC_D", "KC_F", "KC_G", "KC_H", "KC_J", "KC_K", "KC_L",
    "KC_SCLN", "KC_QUOT",
    "KC_LSFT", "KC_Z", "KC_X", "KC_C", "KC_V", "KC_B", "KC_N", "KC_M", "KC_COMM", "KC_DOT", "KC_SLSH", "KC_ENT",
    "LCTL(LSFT(KC_T))", "KC_LCTL", "KC_LALT", "KC_LGUI", "MO(_LOWER)", "LT(_NAV, KC_SPC)", "KC_SPC", "MO(_RAISE)",
    "KC_LEFT", "KC_DOWN", "KC_UP", "KC_RGHT",
]

NESTED_SOURCE = (
    "#include QMK_KEYBOARD_H\n\n"
    "enum layers { _BASE, _LOWER, _RAISE, _NAV };\n\n"
    "const uint16_t PROGMEM keymaps[][MATRIX_ROWS][MATRIX_COLS] = {\n"
    "    [_BASE] = LAYOUT_ortho_5x12(\n"
    + "".join(f"        {NESTED_TOKENS[i]}, {NESTED_TOKENS[i + 1]}, {NESTED_TOKENS[i + 2]},\n" for i in range(0, 57, 3))
    + f"        {NESTED_TOKENS[57]}, {NESTED_TOKENS[58]}, {NESTED_TOKENS[59]}\n"
    "    )\n"
    "};\n"
)

COMMENTED_SOURCE = """\
#include QMK_KEYBOARD_H
#define FOO(x) (x
#define MULTI_LINE(a) \\
    ((a) +

// LAYOUT(KC_NO, KC_NO) is only mentioned in a comment ( unbalanced
/* block comment with ) and LAYOUT( inside
   spanning two lines */
const uint16_t PROGMEM keymaps[][MATRIX_ROWS][MATRIX_COLS] = {
    [0] = LAYOUT(
        KC_A, /* inline ( */ KC_B, KC_C,  // trailing ) comment
        KC_D, KC_E, KC_F
    ),
    [_FN] = LAYOUT(
        KC_1, KC_2, KC_3,
        KC_4, KC_5, KC_6
    )
};

bool process_record_user(uint16_t keycode, keyrecord_t *record) {
    if (keycode == KC_A) {
        SEND_STRING("(// not a comment");
        char c = ')';
    }
    return true;
}
"""

ARRAY_SOURCE = """\
const uint16_t PROGMEM keymaps[][2][3] = {
    [0] = {{KC_A, KC_B, KC_C}, {KC_D, KC_E, KC_F}},
    [_FN] = {
        {KC_1, LCTL(KC_2), KC_3},
        {KC_4, KC_5, KC_6}
    },
};
"""


class TestSourceKeymapParser(unittest.TestCase):

    def setUp(self):
        self.parser = SourceKeymapParser()

    def test_nested_macro_arguments_stay_single_tokens(self):
        ir = self.parser.parse(NESTED_SOURCE)
        self.assertEqual(len(ir.layers), 1)
        self.assertEqual(ir.key_count, 60)
        self.assertEqual(ir.layers[0][24], "MT(MOD_LCTL|MOD_LSFT,KC_ESC)")
        self.assertEqual(ir.layers[0][48], "LCTL(LSFT(KC_T))")
        self.assertEqual(ir.layers[0][53], "LT(_NAV,KC_SPC)")

    def test_layout_name_and_grid_hint(self):
        ir = self.parser.parse(NESTED_SOURCE)
        self.assertEqual(ir.layout, "LAYOUT_ortho_5x12")
        self.assertEqual(ir.hint, (5, 12))
        self.assertEqual(ir.layer_names, ["_BASE"])

    def test_comments_and_preprocessor_are_ignored(self):
        ir = self.parser.parse(COMMENTED_SOURCE)
        self.assertEqual(ir.layers, [["KC_A", "KC_B", "KC_C", "KC_D", "KC_E", "KC_F"],
                                     ["KC_1", "KC_2", "KC_3", "KC_4", "KC_5", "KC_6"]])
        self.assertEqual(ir.layer_names, ["L0", "_FN"])
        self.assertIsNone(ir.hint)

    def test_array_initializer_fallback(self):
        ir = self.parser.parse(ARRAY_SOURCE)
        self.assertIsNone(ir.layout)
        self.assertEqual(ir.layers[0], ["KC_A", "KC_B", "KC_C", "KC_D", "KC_E", "KC_F"])
        self.assertEqual(ir.layers[1], ["KC_1", "LCTL(KC_2)", "KC_3", "KC_4", "KC_5", "KC_6"])
        self.assertEqual(ir.layer_names, ["L0", "_FN"])

    def test_unclosed_bracket_offset(self):
        text = "/* café */\nconst x = LAYOUT(KC_A, KC_B;\n"
        with self.assertRaises(UnbalancedBracketError) as cm:
            self.parser.parse(text)
        self.assertEqual(cm.exception.offset, text.encode("utf-8").index(b"("))
        self.assertIn(f"byte offset {cm.exception.offset}", str(cm.exception))

    def test_unexpected_closer_offset(self):
        text = "x = LAYOUT(KC_A, KC_B));\n"
        with self.assertRaises(UnbalancedBracketError) as cm:
            self.parser.parse(text)
        self.assertEqual(cm.exception.offset, text.index("));") + 1)

    def test_mismatched_bracket_kinds(self):
        with self.assertRaises(UnbalancedBracketError):
            self.parser.parse("x = LAYOUT(KC_A, KC_B];\n")

    def test_no_layers(self):
        with self.assertRaises(LayersNotFoundError):
            self.parser.parse("int main(void) { return 0; }\n")

    def test_layer_length_mismatch(self):
        text = "[0] = LAYOUT(KC_A, KC_B, KC_C),\n[1] = LAYOUT(KC_1, KC_2),\n"
        with self.assertRaises(MalformedKeymapError) as cm:
            self.parser.parse(text)
        self.assertEqual(cm.exception.layer_index, 1)

    def test_strip_comments_keeps_offsets(self):
        text = 'a /* xy */ b // z\n"/* kept */"'
        stripped = SourceKeymapParser.strip_comments(text)
        self.assertEqual(len(stripped), len(text))
        self.assertEqual(stripped.split(), ["a", "b", '"/*', 'kept', '*/"'])


if __name__ == "__main__":
    unittest.main()
