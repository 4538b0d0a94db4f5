from voice_client.main import main

raise SystemExit(main())
