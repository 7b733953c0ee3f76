"""Runtime settings and command line parsing."""

import argparse
from collections.abc import Sequence
from dataclasses import dataclass

from cpuorbit.controller import CameraSettings
from cpuorbit.sampler import MIN_HISTORY

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(slots=True, frozen=True)
class Settings:
    """All tunables of the application."""

    orbit_speed: float = 15.0
    angular_speed: float = 180.0
    distance_per_pixel: float = 0.05
    distance_per_line: float = 1.0
    degrees_per_pixel: float = 0.5
    fling_gain: float = 2.0
    velocity_decay: float = 0.999
    decay_reference_dt: float = 1.0 / 60.0
    sample_period: float = 0.2
    history_capacity: int = 4
    max_cores: int = 256
    frame_rate: float = 30.0
    key_hold: float = 0.6  # Seconds a key counts as held after its last repeat
    log_level: str = "WARNING"
    log_file: str | None = None

    def camera_settings(self) -> CameraSettings:
        return CameraSettings(
            speed=self.orbit_speed,
            angular_speed=self.angular_speed,
            distance_per_pixel=self.distance_per_pixel,
            distance_per_line=self.distance_per_line,
            degrees_per_pixel=self.degrees_per_pixel,
            fling_gain=self.fling_gain,
            velocity_decay=self.velocity_decay,
            decay_reference_dt=self.decay_reference_dt,
        )

    @classmethod
    def from_args(cls, argv: Sequence[str] | None = None) -> "Settings":
        """Build settings from command line flags; exits on invalid values."""
        parser = build_parser()
        args = parser.parse_args(argv)

        if (
            args.sample_period <= 0
            or args.frame_rate <= 0
            or args.key_hold <= 0
            or args.decay_reference_dt <= 0
        ):
            parser.error("periods and rates must be positive")
        if not 0.0 < args.velocity_decay <= 1.0:
            parser.error("--velocity-decay must be in (0, 1]")
        if args.history_capacity < MIN_HISTORY:
            parser.error(f"--history-capacity must be at least {MIN_HISTORY}")
        if args.max_cores <= 0:
            parser.error("--max-cores must be positive")

        return cls(
            orbit_speed=args.orbit_speed,
            angular_speed=args.angular_speed,
            distance_per_pixel=args.distance_per_pixel,
            distance_per_line=args.distance_per_line,
            degrees_per_pixel=args.degrees_per_pixel,
            fling_gain=args.fling_gain,
            velocity_decay=args.velocity_decay,
            decay_reference_dt=args.decay_reference_dt,
            sample_period=args.sample_period,
            history_capacity=args.history_capacity,
            max_cores=args.max_cores,
            frame_rate=args.frame_rate,
            key_hold=args.key_hold,
            log_level=args.log_level,
            log_file=args.log_file,
        )


def build_parser() -> argparse.ArgumentParser:
    defaults = Settings()
    parser = argparse.ArgumentParser(
        prog="cpuorbit", description="Per-core CPU usage as an orbiting 3D scene."
    )
    parser.add_argument("--orbit-speed", type=float, default=defaults.orbit_speed)
    parser.add_argument("--angular-speed", type=float, default=defaults.angular_speed)
    parser.add_argument(
        "--distance-per-pixel", type=float, default=defaults.distance_per_pixel
    )
    parser.add_argument("--distance-per-line", type=float, default=defaults.distance_per_line)
    parser.add_argument("--degrees-per-pixel", type=float, default=defaults.degrees_per_pixel)
    parser.add_argument("--fling-gain", type=float, default=defaults.fling_gain)
    parser.add_argument(
        "--velocity-decay",
        type=float,
        default=defaults.velocity_decay,
        help="Spin multiplier per --decay-reference-dt seconds",
    )
    parser.add_argument(
        "--decay-reference-dt", type=float, default=defaults.decay_reference_dt
    )
    parser.add_argument(
        "--sample-period",
        type=float,
        default=defaults.sample_period,
        help="Seconds between counter reads (minimum 0.05)",
    )
    parser.add_argument("--history-capacity", type=int, default=defaults.history_capacity)
    parser.add_argument("--max-cores", type=int, default=defaults.max_cores)
    parser.add_argument("--frame-rate", type=float, default=defaults.frame_rate)
    parser.add_argument(
        "--key-hold",
        type=float,
        default=defaults.key_hold,
        help=(
            "Seconds a key stays held after its last repeat. Keep it above the "
            "terminal's auto-repeat delay or held keys stutter; larger values "
            "make the camera coast longer after release"
        ),
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=defaults.log_level)
    parser.add_argument("--log-file", default=None, help="Write logs here instead of devtools")
    return parser
