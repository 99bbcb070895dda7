"""Command-line front end for the obstacle registry."""

import argparse
import logging
import os
import sys
from typing import Callable, Optional, Sequence

from route_obstacles.config.settings import Settings, SettingsError, load_settings
from route_obstacles.domain.errors import ObstacleError, ObstacleLoadError
from route_obstacles.domain.models.obstacle import ImageSource, Obstacle, Position
from route_obstacles.domain.providers.location_provider import LocationProvider
from route_obstacles.domain.providers.permissions import PermissionBroker
from route_obstacles.domain.services.creation_flow import CreationFlow
from route_obstacles.domain.services.obstacle_registry import ObstacleRegistry
from route_obstacles.infrastructure.providers.filesystem_image_provider import (
    FilesystemImageProvider,
    ImageSourceCallback,
)
from route_obstacles.infrastructure.providers.location_providers import (
    FixFileLocationProvider,
    StaticLocationProvider,
)
from route_obstacles.infrastructure.providers.permission_brokers import (
    ConfiguredPermissionBroker,
    PromptPermissionBroker,
)
from route_obstacles.infrastructure.repositories.key_value_obstacle_store import (
    KeyValueObstacleStore,
)
from route_obstacles.infrastructure.storage.json_file_key_value_store import (
    JsonFileKeyValueStore,
)

logger = logging.getLogger(__name__)

DEFAULT_FIX_FILENAME = 'gps-fix.json'


def ask_yes_no(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {'y', 'yes'}


def ask_for_path(prompt: str) -> Callable[[], Optional[str]]:
    def ask() -> Optional[str]:
        try:
            answer = input(f"{prompt} (leave empty to cancel): ").strip()
        except EOFError:
            return None
        return answer or None
    return ask


def build_permission_broker(settings: Settings, interactive: bool) -> PermissionBroker:
    if settings.prompt_permissions and interactive:
        return PromptPermissionBroker(ask_yes_no, settings.granted_permissions)
    return ConfiguredPermissionBroker(settings.granted_permissions)


def build_location_provider(
    settings: Settings, permissions: PermissionBroker
) -> LocationProvider:
    if settings.static_latitude is not None:
        return StaticLocationProvider(
            Position(settings.static_latitude, settings.static_longitude),
            permissions,
        )
    fix_path = settings.location_fix_file or os.path.join(
        settings.data_directory, DEFAULT_FIX_FILENAME
    )
    return FixFileLocationProvider(fix_path, permissions, settings.location_max_age)


def build_registry(
    settings: Settings,
    permissions: PermissionBroker,
    choose_from_library: ImageSourceCallback,
    capture_with_camera: ImageSourceCallback,
) -> ObstacleRegistry:
    """
    Wire the registry to file-backed storage and the configured providers.
    """
    store = KeyValueObstacleStore(JsonFileKeyValueStore(settings.data_directory))
    image_provider = FilesystemImageProvider(
        settings.resolved_image_directory,
        permissions,
        choose_from_library,
        capture_with_camera,
    )
    return ObstacleRegistry(
        store,
        build_location_provider(settings, permissions),
        image_provider,
    )


def format_obstacle(obstacle: Obstacle) -> str:
    position = str(obstacle.position) if obstacle.has_position else 'no fix'
    lines = [
        f"[{obstacle.id}] {obstacle.title}",
        f"    {obstacle.description}",
        f"    Position: {position}",
    ]
    if obstacle.image_uri:
        lines.append(f"    Image: {obstacle.image_uri}")
    return '\n'.join(lines)


def notify(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='route-obstacles',
        description="Record obstacles encountered on a route",
    )
    parser.add_argument('--config', help="YAML settings file")
    parser.add_argument('--data-dir', dest='data_directory', help="Where obstacles are stored")
    parser.add_argument('--log-level', dest='log_level', help="Logging level, e.g. INFO")
    parser.add_argument(
        '--grant',
        dest='granted_permissions',
        action='append',
        choices=['location', 'media_library', 'camera'],
        help="Grant a permission without asking (repeatable)",
    )
    parser.add_argument(
        '--no-prompt',
        dest='prompt_permissions',
        action='store_const',
        const=False,
        help="Never ask for permissions; only --grant ones are given",
    )

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('list', help="List recorded obstacles")

    add = commands.add_parser('add', help="Record a new obstacle")
    add.add_argument('title')
    add.add_argument('description')
    image = add.add_mutually_exclusive_group()
    image.add_argument(
        '--image',
        nargs='?',
        const='',
        default=None,
        help="Attach an image from the library (asks for a path if omitted)",
    )
    image.add_argument('--camera', action='store_true', help="Attach a photo from the camera")

    delete = commands.add_parser('delete', help="Delete an obstacle by id")
    delete.add_argument('obstacle_id')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(
            config_path=args.config,
            overrides={
                'data_directory': args.data_directory,
                'log_level': args.log_level,
                'granted_permissions': args.granted_permissions,
                'prompt_permissions': args.prompt_permissions,
            },
        )
    except SettingsError as e:
        notify(str(e))
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    library_path = getattr(args, 'image', None)
    choose_from_library = (
        (lambda: library_path) if library_path
        else ask_for_path("Path of the image to attach")
    )
    permissions = build_permission_broker(settings, sys.stdin.isatty())
    try:
        registry = build_registry(
            settings,
            permissions,
            choose_from_library,
            ask_for_path("Path of the captured photo"),
        )
    except OSError as e:
        notify(f"Cannot prepare storage: {e}")
        return 1

    try:
        registry.load()
    except ObstacleLoadError as e:
        notify(str(e))
        if args.command != 'list':
            # Writing now would overwrite the unreadable collection.
            return 1

    if args.command == 'list':
        obstacles = registry.list()
        if not obstacles:
            print("No obstacles recorded.")
        for obstacle in obstacles:
            print(format_obstacle(obstacle))
        return 0

    if args.command == 'add':
        if args.camera:
            source = ImageSource.CAMERA
        elif args.image is not None:
            source = ImageSource.LIBRARY
        else:
            source = ImageSource.NONE

        flow = CreationFlow(registry)
        flow.open()
        flow.edit(title=args.title, description=args.description, image_source=source)
        obstacle = flow.submit()
        if obstacle is None:
            notify(flow.error)
            return 1
        print(format_obstacle(obstacle))
        return 0

    try:
        removed = registry.delete(args.obstacle_id)
    except ObstacleError as e:
        notify(str(e))
        return 1
    if removed is None:
        print(f"No obstacle with id {args.obstacle_id}.")
    else:
        print(f"Deleted {removed.title}.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
