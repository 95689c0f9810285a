from mango_api.server import main

main()
