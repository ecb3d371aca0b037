import unittest

from bfllvm import BrainfuckInterpreter, CompilerOptions, JITRunner, Parser
from bfllvm.jit import _read_byte, _write_byte


class JITRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = Parser()
        self.runner = JITRunner()

    def run_source(self, source: str, input_data=None) -> bytes:
        return self.runner.run(self.parser.parse(source), input_data=input_data)

    def test_add_scenario_prints_seven_once(self) -> None:
        self.assertEqual(self.run_source("++>+++++[<+>-]<."), b"\x07")

    def test_empty_loop_has_no_io(self) -> None:
        self.assertEqual(self.run_source("[]"), b"")

    def test_loop_skipped_when_cell_zero(self) -> None:
        self.assertEqual(self.run_source("[+.]"), b"")

    def test_io_pass_through(self) -> None:
        self.assertEqual(self.run_source(",.", input_data=b"Z"), b"Z")

    def test_exhausted_input_stores_eof_byte(self) -> None:
        self.assertEqual(self.run_source(",."), b"\xff")

    def test_byte_wraparound(self) -> None:
        self.assertEqual(self.run_source("+" * 256 + "."), b"\x00")
        self.assertEqual(self.run_source("-."), b"\xff")

    def test_nested_loops_restore_cursor(self) -> None:
        self.assertEqual(self.run_source("++[>+++[>+<-]<-]>>.<<+."), b"\x06\x01")

    def test_hello_world(self) -> None:
        source = (
            "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]>>."
            ">---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
        )
        self.assertEqual(self.run_source(source), b"Hello World!\n")

    def test_matches_interpreter(self) -> None:
        source = ",[.-]"
        program = self.parser.parse(source)
        expected = BrainfuckInterpreter().run(program, input_data=b"\x05")
        self.assertEqual(self.runner.run(program, input_data=b"\x05"), expected)
        self.assertEqual(expected, bytes([5, 4, 3, 2, 1]))

    def test_optimized_build_behaves_the_same(self) -> None:
        runner = JITRunner(CompilerOptions(optimize=True))
        program = self.parser.parse("++>+++++[<+>-]<.")
        self.assertEqual(runner.run(program), b"\x07")


class IOCallbackTests(unittest.TestCase):
    def test_callbacks_require_an_active_run(self) -> None:
        with self.assertRaises(RuntimeError):
            _write_byte(65)
        with self.assertRaises(RuntimeError):
            _read_byte()


if __name__ == "__main__":
    unittest.main()
