from .server_stdio import main

main()
