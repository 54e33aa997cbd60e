# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the assembler facade, file handling and the nibasm
# command-line tool.
#
# Test coverage includes:
#   - Complete program assembly from strings and files
#   - Atomic ROM output (no partial or stale files on failure)
#   - Driver errors for unreadable and unwritable files
#   - Command-line interface and exit codes
# =============================================================================

import os

import pytest
from click.testing import CliRunner

from nibble_asm import (
    Assembler,
    AssemblerError,
    FileCreateError,
    FileOpenError,
    FileReadError,
    FileWriteError,
    LexError,
    NibbleAsmError,
    UndefinedLabelError,
    assemble,
    assemble_file,
)
from nibble_asm.cli.errors import ExitCode
from nibble_asm.cli.nibasm import main


COUNTER_PROGRAM = """\
; count r1 up forever
start:
    lit r0          ; clear accumulator
loop:
    add r1
    cjmp l_done
    jmp l_loop
done:
    halt
|0100
data:
    2a
    ff
"""


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete pipeline from source to ROM."""

    def test_minimal_program(self):
        rom = assemble("halt")
        assert len(rom) == 65536
        assert rom[0] == 0x13

    def test_counter_program(self):
        asm = Assembler()
        rom = asm.assemble_string(COUNTER_PROGRAM)
        assert rom[:5] == bytes([0x00, 0x91, 0x24, 0x11, 0x13])
        assert rom[0x0100:0x0102] == bytes([0x2A, 0xFF])
        assert asm.get_symbols() == {
            "start": 0x0000,
            "loop": 0x0001,
            "done": 0x0004,
            "data": 0x0100,
        }
        assert asm.get_used_addresses() == [0, 1, 2, 3, 4, 0x100, 0x101]

    def test_get_rom_matches_result(self):
        asm = Assembler()
        rom = asm.assemble_string("lit r1\n")
        assert asm.get_rom() == rom

    def test_lex_error_propagates(self):
        with pytest.raises(LexError):
            assemble("lit R1\n")

    def test_errors_share_base_class(self):
        with pytest.raises(NibbleAsmError):
            assemble("jmp h_missing\n")

    def test_error_reports_filename(self):
        with pytest.raises(UndefinedLabelError) as exc_info:
            assemble("jmp h_missing\n", "prog.asm")
        assert str(exc_info.value).startswith("prog.asm:1:5: error: undefined label 'missing'")

    def test_warnings_exposed(self):
        asm = Assembler()
        asm.assemble_string("a:\na:\n")
        assert len(asm.get_warnings()) == 1


# =============================================================================
# File I/O Tests
# =============================================================================

class TestFileIO:
    """Test reading sources and writing ROM files."""

    def test_assemble_from_file(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_text("lit r1\nadd r2\nhalt\n")
        rom = assemble_file(src)
        assert rom[:3] == bytes([0x01, 0x92, 0x13])

    def test_write_rom(self, tmp_path):
        out = tmp_path / "prog.rom"
        asm = Assembler()
        asm.assemble_string("|0100\nhalt\n")
        asm.write_rom(out)

        data = out.read_bytes()
        assert len(data) == 65536
        assert data[0x0100] == 0x13
        assert os.listdir(tmp_path) == ["prog.rom"]

    def test_write_rom_replaces_existing(self, tmp_path):
        out = tmp_path / "prog.rom"
        out.write_bytes(b"stale")
        asm = Assembler()
        asm.assemble_string("halt\n")
        asm.write_rom(out)
        assert out.read_bytes()[:2] == bytes([0x13, 0x00])

    def test_write_rom_before_assembly(self, tmp_path):
        with pytest.raises(AssemblerError):
            Assembler().write_rom(tmp_path / "prog.rom")
        assert not (tmp_path / "prog.rom").exists()

    def test_no_rom_after_failure(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("halt\n")
        with pytest.raises(UndefinedLabelError):
            asm.assemble_string("jmp h_missing\n")
        with pytest.raises(AssemblerError):
            asm.write_rom(tmp_path / "prog.rom")
        assert not (tmp_path / "prog.rom").exists()

    def test_lex_error_clears_previous_rom(self):
        asm = Assembler()
        asm.assemble_string("halt\n")
        with pytest.raises(LexError):
            asm.assemble_string("HALT\n")
        assert asm.get_rom() is None
        assert asm.get_symbols() == {}

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileOpenError) as exc_info:
            assemble_file(tmp_path / "missing.asm")
        assert "cannot open" in str(exc_info.value)

    def test_source_is_directory(self, tmp_path):
        with pytest.raises(FileOpenError):
            assemble_file(tmp_path)

    def test_source_not_utf8(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_bytes(b"halt\n\xff\xfe\n")
        with pytest.raises(FileReadError) as exc_info:
            assemble_file(src)
        assert "UTF-8" in str(exc_info.value)

    def test_output_directory_missing(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("halt\n")
        with pytest.raises(FileCreateError):
            asm.write_rom(tmp_path / "no_such_dir" / "prog.rom")

    def test_write_failure_removes_temp_file(self, tmp_path, monkeypatch):
        def failing_replace(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "replace", failing_replace)
        out = tmp_path / "prog.rom"
        out.write_bytes(b"previous")
        asm = Assembler()
        asm.assemble_string("halt\n")

        with pytest.raises(FileWriteError) as exc_info:
            asm.write_rom(out)
        assert "No space left on device" in str(exc_info.value)
        assert os.listdir(tmp_path) == ["prog.rom"]
        assert out.read_bytes() == b"previous"

    def test_failed_run_leaves_no_reports(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("b:\nhalt\n")
        with pytest.raises(UndefinedLabelError):
            asm.assemble_string("a:\nhalt\njmp h_missing\n")

        assert asm.get_symbols() == {}
        assert asm.get_warnings() == []
        with pytest.raises(AssemblerError):
            asm.write_listing(tmp_path / "prog.lst")
        with pytest.raises(AssemblerError):
            asm.write_symbols(tmp_path / "prog.sym")
        assert os.listdir(tmp_path) == []

    def test_write_listing_and_symbols(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(COUNTER_PROGRAM)
        asm.write_listing(tmp_path / "prog.lst")
        asm.write_symbols(tmp_path / "prog.sym")
        assert "cjmp l_done" in (tmp_path / "prog.lst").read_text()
        assert "data $0100" in (tmp_path / "prog.sym").read_text()


# =============================================================================
# CLI Tests
# =============================================================================

class TestAssemblerCLI:
    """Tests for the nibasm CLI tool."""

    def test_cli_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "64K ROM image" in result.output

    def test_cli_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "nibasm" in result.output

    def test_cli_requires_two_arguments(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [str(tmp_path / "prog.asm")])
        assert result.exit_code == 2
        assert "Usage" in result.output

    def test_cli_assembles(self, tmp_path):
        src = tmp_path / "prog.asm"
        out = tmp_path / "prog.rom"
        src.write_text("lit r1\nadd r2\nhalt\n")

        runner = CliRunner()
        result = runner.invoke(main, [str(src), str(out)])

        assert result.exit_code == 0
        data = out.read_bytes()
        assert len(data) == 65536
        assert data[:3] == bytes([0x01, 0x92, 0x13])

    def test_cli_assembly_error(self, tmp_path):
        src = tmp_path / "prog.asm"
        out = tmp_path / "prog.rom"
        src.write_text("add sub\n")

        runner = CliRunner()
        result = runner.invoke(main, [str(src), str(out)])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "unrecognized line 'add sub'" in result.output
        assert not out.exists()

    def test_cli_failure_keeps_existing_output(self, tmp_path):
        src = tmp_path / "prog.asm"
        out = tmp_path / "prog.rom"
        src.write_text("jmp h_missing\n")
        out.write_bytes(b"previous")

        runner = CliRunner()
        result = runner.invoke(main, [str(src), str(out)])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert out.read_bytes() == b"previous"

    def test_cli_missing_input(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [str(tmp_path / "missing.asm"), str(tmp_path / "out.rom")])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "cannot open" in result.output
        assert not (tmp_path / "out.rom").exists()

    def test_cli_symbols_and_listing(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_text(COUNTER_PROGRAM)

        runner = CliRunner()
        result = runner.invoke(main, [
            str(src), str(tmp_path / "prog.rom"),
            "-s", str(tmp_path / "prog.sym"),
            "-l", str(tmp_path / "prog.lst"),
        ])

        assert result.exit_code == 0
        assert "loop $0001" in (tmp_path / "prog.sym").read_text()
        assert (tmp_path / "prog.lst").exists()

    def test_cli_verbose(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_text("start:\nhalt\n")

        runner = CliRunner()
        result = runner.invoke(main, ["-v", str(src), str(tmp_path / "prog.rom")])

        assert result.exit_code == 0
        assert "start" in result.output
        assert "$0000" in result.output
        assert "Assembly complete: 1 bytes written, 1 labels" in result.output

    def test_cli_unwritable_symbols_file(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_text("start:\nhalt\n")

        runner = CliRunner()
        # A path below a regular file fails with NotADirectoryError
        result = runner.invoke(main, [
            str(src), str(tmp_path / "prog.rom"),
            "-s", str(src / "prog.sym"),
        ])

        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "Error:" in result.output
        assert "Internal error" not in result.output
        assert "Usage" not in result.output
