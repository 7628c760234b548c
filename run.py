"""Headless CHIP-8 runner.

Loads a ROM, runs a fixed number of cycles in one compiled scan and reports the
final machine state. Optionally saves the last frame as an image.
"""

import hydra
from hydra.utils import to_absolute_path
from omegaconf import DictConfig, OmegaConf

from chip8vm import Interpreter, MachineFault, TraceLogger, save_frame
from chip8vm.logging import ConsoleLogger


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    cfg = OmegaConf.to_container(cfg)
    logger = ConsoleLogger(name="chip8vm", log_level=cfg["log_level"])
    logger.log_config(cfg)

    trace = TraceLogger(ConsoleLogger(name="Trace", log_level=cfg["log_level"])) if cfg["trace"] else None
    interpreter = Interpreter(seed=cfg["seed"], modern_mode=cfg["modern_mode"], trace=trace, logger=logger)
    interpreter.load_rom(to_absolute_path(cfg["rom"]))

    try:
        interpreter.run(cfg["cycles"], progress=cfg["progress"])
    except MachineFault as e:
        logger.error(f"Halted after at most {cfg['cycles']} cycles: {e}")

    state = interpreter.state
    logger.info(f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}  SP: {int(state.stack.pointer)}")
    logger.info("V: " + " ".join(f"{int(v):02X}" for v in state.V))
    logger.info(f"Delay: {interpreter.delay_timer}  Sound: {interpreter.sound_timer}")

    if cfg["frame"]:
        path = to_absolute_path(cfg["frame"])
        save_frame(state.display, path, scale=cfg["scale"], color_scheme=cfg["color_scheme"])
        logger.info(f"Frame saved in {path}")


if __name__ == "__main__":
    main()
