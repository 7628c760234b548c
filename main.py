"""
Interactive CHIP-8 frontend
"""

import argparse
import time

import pygame

from chip8vm import Interpreter, Chip8Error, MachineFault, display_to_rgb, create_color_scheme
from chip8vm.logging import ConsoleLogger

# COSMAC VIP keypad mapped onto the left side of a QWERTY keyboard
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay_height = len(text_lines) * line_height + 8
    overlay_width = max_width + 16

    overlay = pygame.Surface((overlay_width, overlay_height))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


def debug_lines(interpreter, cycles_per_frame, current_fps, paused):
    state = interpreter.state
    lines = [
        f"PC: 0x{interpreter.pc:03X}  I: 0x{int(state.I):03X}  SP: {int(state.stack.pointer)}",
        f"Delay: {interpreter.delay_timer}  Sound: {interpreter.sound_timer}",
        f"Cycles: {interpreter.cycles}  CPF: {cycles_per_frame}",
        f"FPS: {current_fps:.1f}",
        f"Status: {'HALTED' if interpreter.halted else 'PAUSED' if paused else 'RUNNING'}",
    ]
    for i in range(0, 16, 8):
        lines.append(" ".join(f"V{j:X}:{int(state.V[j]):02X}" for j in range(i, i + 8)))
    return lines


def run_emulator(rom_filename, modern_mode=False, scale=8, cycles_per_frame=1, fps=60, color_scheme="classic"):
    """Main emulator loop. Each cycle also ticks the timers, so 1 cycle per frame at 60 FPS is 60 Hz."""
    logger = ConsoleLogger(name="chip8vm")

    pygame.init()
    screen = pygame.display.set_mode((64 * scale, 32 * scale))
    pygame.display.set_caption(f"chip8vm - {rom_filename}")
    clock = pygame.time.Clock()
    on_color, off_color = create_color_scheme(color_scheme)

    interpreter = Interpreter(modern_mode=modern_mode, logger=logger)
    try:
        interpreter.load_rom(rom_filename)
    except (OSError, Chip8Error) as e:
        logger.error(f"Cannot load {rom_filename}: {e}")
        pygame.quit()
        return

    running = True
    paused = False
    show_debug = False

    frame_count = 0
    fps_start_time = time.time()
    current_fps = fps

    logger.info("Controls: ESC=Quit, P=Pause, F5=Reset, +/-=Speed, F1=Debug")

    while running:
        clock.tick(fps)

        frame_count += 1
        current_time = time.time()
        if current_time - fps_start_time >= 1.0:
            current_fps = frame_count / (current_time - fps_start_time)
            frame_count = 0
            fps_start_time = current_time

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_p:
                    paused = not paused
                elif event.key == pygame.K_F1:
                    show_debug = not show_debug
                elif event.key == pygame.K_F5:
                    interpreter.reset()
                    logger.info("Reset")
                elif event.key == pygame.K_EQUALS:
                    cycles_per_frame = min(100, cycles_per_frame + 1)
                    logger.info(f"Speed: {cycles_per_frame} cycles per frame")
                elif event.key == pygame.K_MINUS:
                    cycles_per_frame = max(1, cycles_per_frame - 1)
                    logger.info(f"Speed: {cycles_per_frame} cycles per frame")
                elif event.key in KEY_MAP:
                    interpreter.press_key(KEY_MAP[event.key])
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    interpreter.release_key(KEY_MAP[event.key])

        if not paused and not interpreter.halted:
            try:
                for _ in range(cycles_per_frame):
                    interpreter.step()
            except MachineFault:
                show_debug = True

        if interpreter.needs_redraw or show_debug:
            frame = display_to_rgb(interpreter.display, scale, on_color, off_color)
            pygame.surfarray.blit_array(screen, frame.swapaxes(0, 1))
            interpreter.acknowledge_redraw()

            if show_debug:
                font = pygame.font.Font(None, 18)
                draw_overlay_text(screen, debug_lines(interpreter, cycles_per_frame, current_fps, paused),
                                  (5, 5), font, alpha=100)

            pygame.display.flip()

    pygame.quit()


def parse_args():
    parser = argparse.ArgumentParser(description="Play a CHIP-8 ROM")
    parser.add_argument("rom", help="Path to the ROM image")
    parser.add_argument("--modern", action="store_true", help="Use modern shift/load-store/jump semantics")
    parser.add_argument("--scale", type=int, default=8, help="Pixel upscaling factor")
    parser.add_argument("--cycles-per-frame", type=int, default=1, help="Cycles executed per frame")
    parser.add_argument("--fps", type=int, default=60, help="Frames per second")
    parser.add_argument("--color-scheme", default="classic", help="Display palette")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    run_emulator(args.rom, args.modern, scale=args.scale, cycles_per_frame=args.cycles_per_frame,
                 fps=args.fps, color_scheme=args.color_scheme)
