"""
Terminal entry point
 - Single responsibility: Launch the console game
 - Imports and calls console_ui.app.main()
"""
import sys
from console_ui.app import main

if __name__ == "__main__":
    sys.exit(main())
