from sweatyboot.cli import main

main()
