import io
from pathlib import Path
import random
import tempfile
import unittest

from bfllvm import (
    Decrement,
    EmptyParseError,
    Increment,
    Input,
    Loop,
    MoveLeft,
    MoveRight,
    Output,
    ParseError,
    Parser,
    Program,
    format_program,
)
from bfllvm.parser import count_instructions, load_program, max_depth


class FailingStream(io.StringIO):
    def read(self, size=-1):
        raise OSError("device unplugged")


class ParserTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = Parser()

    def test_add_and_move_scenario(self) -> None:
        program = self.parser.parse("++>+++++[<+>-]<.")
        expected = Program(
            body=[
                Increment(),
                Increment(),
                MoveRight(),
                *[Increment() for _ in range(5)],
                Loop(body=[MoveLeft(), Increment(), MoveRight(), Decrement()]),
                MoveLeft(),
                Output(),
            ]
        )
        self.assertEqual(program, expected)

    def test_empty_loop(self) -> None:
        program = self.parser.parse("[]")
        self.assertEqual(program, Program(body=[Loop(body=[])]))

    def test_io_commands(self) -> None:
        program = self.parser.parse(",.")
        self.assertEqual(program.body, [Input(), Output()])

    def test_empty_input_is_empty_program(self) -> None:
        self.assertEqual(self.parser.parse(""), Program(body=[]))

    def test_comments_are_ignored(self) -> None:
        plain = self.parser.parse("+[->+<]>.")
        commented = self.parser.parse("add one + then loop [ move - right > + back < ] > print .\n")
        self.assertEqual(plain, commented)

    def test_random_filler_does_not_change_tree(self) -> None:
        rng = random.Random(1234)
        source = "++[>+++[>+<-]<-]>>.,"
        filler = "abc xyz\n\t#!0123"
        for _ in range(20):
            pieces = []
            for char in source:
                pieces.append("".join(rng.choice(filler) for _ in range(rng.randint(0, 3))))
                pieces.append(char)
            self.assertEqual(self.parser.parse("".join(pieces)), self.parser.parse(source))

    def test_nested_loops(self) -> None:
        program = self.parser.parse("[[[-]]]")
        self.assertEqual(program, Program(body=[Loop(body=[Loop(body=[Loop(body=[Decrement()])])])]))
        self.assertEqual(max_depth(program), 3)
        self.assertEqual(count_instructions(program), 4)

    def test_unclosed_loop_is_closed_at_end_of_stream(self) -> None:
        program = self.parser.parse("+[>[-")
        self.assertEqual(
            program,
            Program(body=[Increment(), Loop(body=[MoveRight(), Loop(body=[Decrement()])])]),
        )

    def test_stray_close_ends_top_level(self) -> None:
        program = self.parser.parse("+]++")
        self.assertEqual(program, Program(body=[Increment()]))

    def test_try_parse_reads_stream(self) -> None:
        program = self.parser.try_parse(io.StringIO("+-"))
        self.assertEqual(program.body, [Increment(), Decrement()])

    def test_read_failure_raises(self) -> None:
        with self.assertRaises(EmptyParseError):
            self.parser.try_parse(FailingStream())


class LoadProgramTests(unittest.TestCase):
    def test_high_bytes_in_comments(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source_path = Path(tmp) / "program.bf"
            source_path.write_bytes(b"caf\xe9 +. \xff\xfe[-]")
            program = load_program(source_path)
        self.assertEqual(program, Parser().parse("+.[-]"))


class StrictParserTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = Parser(strict=True)

    def test_balanced_program_parses(self) -> None:
        self.assertEqual(self.parser.parse("[-]"), Program(body=[Loop(body=[Decrement()])]))

    def test_unmatched_open_reports_position(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse("+ [>[-]")
        self.assertEqual(ctx.exception.position, 2)

    def test_unmatched_close_reports_position(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse("+-]")
        self.assertEqual(ctx.exception.position, 2)


class FormatProgramTests(unittest.TestCase):
    def test_round_trip_structure(self) -> None:
        parser = Parser()
        sources = [
            "",
            "[]",
            "++>+++++[<+>-]<.",
            "hello [ world -> [ nested <+> ] ] , . done",
            "[[[[]]]][-][>]<<",
        ]
        for source in sources:
            program = parser.parse(source)
            printed = format_program(program)
            self.assertEqual(parser.parse(printed), program)
            self.assertTrue(set(printed) <= set("+-<>.,[]"))

    def test_format_single_loop(self) -> None:
        self.assertEqual(format_program(Loop(body=[Output()])), "[.]")


if __name__ == "__main__":
    unittest.main()
