"""main module"""

import sys

from hooksounds.banner import render_main_menu_banner
from hooksounds.cli import menu


def main():
    """
    The main function that runs the program.
    """
    print(render_main_menu_banner())
    try:
        menu()
    except KeyboardInterrupt:
        print("\n[!] Exiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
